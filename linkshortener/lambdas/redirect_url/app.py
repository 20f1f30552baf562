import json
import logging
import functools

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.store import EntryStore, create_entry_store
from linkshortener.dao.exceptions import EntryNotFoundError
from linkshortener.exceptions import EntryExpiredError
from linkshortener.utils import load_settings, initialize_logging, guarantee_500_response
from linkshortener.utils.runtime import get_visitor
from linkshortener.lambdas.responses import response_302, response_400, response_401, response_403, response_404, response_410
from linkshortener.lambdas.redirect_url.constants import (
    MISSING_SHORTCODE,
    ENTRY_NOT_FOUND,
    ENTRY_EXPIRED,
    PASSWORD_REQUIRED,
    PASSWORD_MISMATCH,
    REDIRECT_SUCCESS,
)


initialize_logging()
logger = logging.getLogger(__name__)


@functools.cache
def get_store() -> EntryStore:
    return create_entry_store(load_settings('redirect_url'))


def get_password(event: LambdaEvent) -> str:
    """Password supplied with the request: query string first, then JSON body"""
    query = event.get('queryStringParameters') or {}
    if query.get('password'):
        return query['password']

    try:
        body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        return ''
    password = body.get('password') if isinstance(body, dict) else None
    return password if isinstance(password, str) else ''


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to redirect URLs

    This Lambda handler follows this procedure to redirect URLs:
    - Step 1: Extract shortcode from request path
    - Step 2: Get entry from the entry store (refusing expired entries)
    - Step 3: Check the password of protected entries
    - Step 4: Register the visit in the background
    - Step 5: Redirect client to target URL

    HTTP responses:
        302: Successful redirect
            headers:
                Location: target URL destination
        400: Bad client request
            message: missing shortcode in path parameters
        401: Unauthorized
            message: entry is password protected and no password was given
        403: Forbidden
            message: wrong password
        404: Not found
            message: no entry with this shortcode
        410: Gone
            message: entry is expired
        500: Internal server error
            message: server experienced an internal error

    Example:
        >>> event = {'pathParameters': {'shortcode': 'aBcD'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        302
        >>> response['headers']['Location']
        'https://example.com/my-page'
    """
    # 1- Extract shortcode from request's path
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if not shortcode:
        logger.info('Missing "shortcode" in path. Responding with 400.', extra={'event': MISSING_SHORTCODE})
        return response_400(message="missing 'shortcode' in path", error_code=MISSING_SHORTCODE)

    store = get_store()

    # 2- Get entry, refusing expired ones
    try:
        entry = store.get_entry_and_increase(shortcode)
    except EntryNotFoundError:
        logger.info('Entry not found. Responding with 404.', extra={'shortcode': shortcode, 'event': ENTRY_NOT_FOUND})
        return response_404(message=f"no entry with id '{shortcode}'", error_code=ENTRY_NOT_FOUND)
    except EntryExpiredError:
        logger.info('Entry is expired. Responding with 410.', extra={'shortcode': shortcode, 'event': ENTRY_EXPIRED})
        return response_410(message=f"entry '{shortcode}' is expired", error_code=ENTRY_EXPIRED)

    # 3- Check password of protected entries
    if entry.is_password_protected():
        password = get_password(event)
        if not password:
            logger.info('Password required. Responding with 401.', extra={'shortcode': shortcode, 'event': PASSWORD_REQUIRED})
            return response_401(message='password required', error_code=PASSWORD_REQUIRED)
        if not store.verify_password(entry, password):
            logger.info('Wrong password. Responding with 403.', extra={'shortcode': shortcode, 'event': PASSWORD_MISMATCH})
            return response_403(message='wrong password', error_code=PASSWORD_MISMATCH)

    # 4- Register visit (never fails the redirect)
    store.register_visit(shortcode, get_visitor(event), entry.expires_at)

    # 5- Redirect client to target URL
    logger.info(
        'Redirecting client to target URL. Responding with 302.',
        extra={'shortcode': shortcode, 'event': REDIRECT_SUCCESS},
    )
    return response_302(location=entry.target)
