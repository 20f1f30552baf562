"""Helper utilities for AWS lambda functions and the entry store.

Functions:
    base_url() -> str
        Extract correct public base URL from API Gateway event
    get_short_url() -> str
        Get string representation of short URL for a given shortcode
    as_utc() -> datetime | None
        Treat naive datetimes as UTC
    expiration_ttl() -> int | None
        Compute the storage TTL in seconds for an expiration date
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present
    guarantee_500_response(func) -> Callable
        Decorator: Turn unhandled exceptions into a 500 response

Example:
    Typical usage inside a Lambda handler:

        >>> from linkshortener.utils.helpers import base_url
        >>> event = {
        ...     "requestContext": {
        ...         "domainName": "abc123.execute-api.us-east-1.amazonaws.com",
        ...         "stage": "Prod"
        ...     }
        ... }
        >>> base_url(event)
        'https://abc123.execute-api.us-east-1.amazonaws.com/Prod'

        >>> base_url({})
        'http://localhost:3000'
"""

import os
import json
import math
import logging
import functools
from datetime import datetime, UTC
from typing import Any
from collections.abc import Callable

from linkshortener.constants import TTL, UNKNOWN_INTERNAL_SERVER_ERROR
from linkshortener.exceptions import MissingEnvironmentVariableError


logger = logging.getLogger(__name__)


def base_url(event: dict[str, Any], location: str = '') -> str:
    """Extract public base URL from API Gateway event

    Works seamlessly with both custom and default AWS API Gateway domains.
    If a custom domain is configured, the stage name is omitted.
    If using the default AWS execute-api domain, the stage name is included.
    A configured location is appended as a path prefix.

    Args:
        event (dict): API Gateway event object passed to Lambda handler
        location (str): Optional path under which the service is mounted

    Returns:
        str: Base URL, e.g.:
             - "https://sho.rt"
             - "https://sho.rt/go"
             - "https://abc123.execute-api.us-east-1.amazonaws.com/Prod"
    """
    request_context = event.get('requestContext', {})
    domain = request_context.get('domainName', '')
    stage = request_context.get('stage', '')

    if domain and 'execute-api' not in domain:
        # If the domain is a custom domain (no execute-api), skip stage
        url = f'https://{domain}'
    elif domain:
        # Otherwise include the stage (for AWS default domains)
        url = f'https://{domain}/{stage}'
    else:
        # Fallback: local invocation (SAM CLI, tests, etc.)
        url = 'http://localhost:3000'

    location = location.strip('/')
    return f'{url}/{location}' if location else url


def get_short_url(shortcode: str, event: dict[str, Any], location: str = '') -> str:
    """Get string representation of shortened URL"""
    return f'{base_url(event, location).rstrip("/")}/{shortcode}'


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes; aware ones (and None) are returned unchanged

    Example:
        >>> as_utc(datetime(2030, 1, 1))
        datetime.datetime(2030, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def expiration_ttl(expires_at: datetime | None) -> int | None:
    """Compute how many seconds a record expiring at `expires_at` should live

    Entries that are already expired (or about to) still live for TTL.EXPIRATION_FLOOR
    seconds, so that reads can report them as expired instead of missing.

    Returns:
        int | None:
            TTL in seconds, or None if the record never expires.

    Example:
        >>> expiration_ttl(None) is None
        True
        >>> expiration_ttl(datetime.now(UTC) - timedelta(days=1))
        60
    """
    if expires_at is None:
        return None
    remaining = (as_utc(expires_at) - datetime.now(UTC)).total_seconds()
    return max(math.ceil(remaining), TTL.EXPIRATION_FLOOR)


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Args:
        *names (str):
            Names of required environment variables.

    Raises:
        MissingEnvironmentVariableError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID')
        ... def my_function():
        ...     pass
        >>> my_function()
        MissingEnvironmentVariableError: Missing required environment variables: 'APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID'
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                missing_list = ', '.join(f"'{name}'" for name in missing)
                raise MissingEnvironmentVariableError(f'Missing required environment variables: {missing_list}')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def guarantee_500_response(func: Callable) -> Callable:
    """Decorator: respond with 500 instead of crashing the Lambda on unhandled errors"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> dict:
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.exception(
                'Unhandled error in lambda handler. Responding with 500.',
                extra={'event': UNKNOWN_INTERNAL_SERVER_ERROR, 'error': e.__class__.__name__},
            )
            return {
                'statusCode': 500,
                'body': json.dumps({'message': 'Internal Server Error', 'errorCode': UNKNOWN_INTERNAL_SERVER_ERROR}),
            }

    return wrapper
