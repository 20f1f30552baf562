import json
import logging
import functools
from datetime import datetime

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.models import EntryModel
from linkshortener.store import EntryStore, create_entry_store
from linkshortener.store.entry_store import normalize_url
from linkshortener.dao.exceptions import EntryAlreadyExistsError
from linkshortener.exceptions import IDGenerationExhaustedError, InvalidShortcodeError, InvalidURLError
from linkshortener.utils import Settings, load_settings, get_short_url, as_utc, encode_tag, initialize_logging, guarantee_500_response
from linkshortener.utils.runtime import get_client_ip
from linkshortener.lambdas.responses import response_200, response_400, response_409, response_500
from linkshortener.lambdas.shorten_url.constants import (
    INVALID_JSON,
    MISSING_URL,
    INVALID_URL,
    INVALID_SHORTCODE,
    INVALID_PASSWORD,
    INVALID_EXPIRATION,
    SHORTCODE_TAKEN,
    SHORTCODE_GENERATION_FAILED,
    SHORTEN_SUCCESS,
)


initialize_logging()
logger = logging.getLogger(__name__)


@functools.cache
def get_settings() -> Settings:
    return load_settings('shorten_url')


@functools.cache
def get_store() -> EntryStore:
    return create_entry_store(get_settings())


def parse_expiration(value: str | None) -> datetime | None:
    """Parse an ISO-8601 expiration date; naive values are taken as UTC

    Raises:
        ValueError: If `value` is not an ISO-8601 string.
    """
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise ValueError(f'Expiration must be an ISO-8601 string (given value: {value!r}).')
    return as_utc(datetime.fromisoformat(value))


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to shorten URLs

    This Lambda handler follows this procedure to shorten URLs:
    - Step 1: Parse the JSON request body
    - Step 2: Validate url, id, password and expiration
    - Step 3: Create the entry (via EntryStore)
    - Step 4: Respond with the short URL and the deletion URL

    HTTP responses:
        200: Successful URL shortening
            id: shortcode of the new entry
            url: stored target URL (spaces percent-encoded)
            short_url: public short URL
            deletion_url: URL to DELETE in order to remove the entry
        400: Bad client request
            message: invalid JSON, missing/invalid url, invalid id, password or expiration
        409: Conflict
            message: requested id already exists
        500: Internal server error
            message: no free shortcode found, or an unexpected error

    Example:
        >>> event = {'body': '{"url": "https://example.com"}'}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        200
        >>> json.loads(response['body'])['short_url']
        'http://localhost:3000/aBcD'
    """
    # 1- Parse request body
    try:
        body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        logger.info('Request body is not valid JSON. Responding with 400.', extra={'event': INVALID_JSON})
        return response_400(message='invalid JSON body', error_code=INVALID_JSON)
    if not isinstance(body, dict):
        logger.info('Request body is not a JSON object. Responding with 400.', extra={'event': INVALID_JSON})
        return response_400(message='invalid JSON body', error_code=INVALID_JSON)

    # 2- Validate request fields
    target_url = body.get('url')
    if not target_url or not isinstance(target_url, str):
        logger.info("Missing 'url' in request body. Responding with 400.", extra={'event': MISSING_URL})
        return response_400(message="missing 'url' in JSON body", error_code=MISSING_URL)

    shortcode = body.get('id') or ''
    if not isinstance(shortcode, str):
        return response_400(message="'id' must be a string", error_code=INVALID_SHORTCODE)

    password = body.get('password') or ''
    if not isinstance(password, str):
        return response_400(message="'password' must be a string", error_code=INVALID_PASSWORD)

    try:
        expires_at = parse_expiration(body.get('expiration'))
    except ValueError:
        logger.info('Invalid expiration date. Responding with 400.', extra={'event': INVALID_EXPIRATION})
        return response_400(message="'expiration' must be an ISO-8601 date", error_code=INVALID_EXPIRATION)

    # 3- Create entry
    settings = get_settings()
    store = get_store()
    entry = EntryModel(target=target_url, expires_at=expires_at, remote_addr=get_client_ip(event) or None)
    try:
        shortcode, deletion_tag = store.create_entry(entry, shortcode=shortcode, password=password)
    except InvalidURLError:
        logger.info('Invalid target URL. Responding with 400.', extra={'event': INVALID_URL, 'url': target_url})
        return response_400(message=f"'{target_url}' is not a valid URL", error_code=INVALID_URL)
    except InvalidShortcodeError:
        logger.info('Invalid requested shortcode. Responding with 400.', extra={'event': INVALID_SHORTCODE, 'shortcode': shortcode})
        return response_400(message=f"'{shortcode}' is not a valid id", error_code=INVALID_SHORTCODE)
    except EntryAlreadyExistsError:
        logger.info('Requested shortcode is taken. Responding with 409.', extra={'event': SHORTCODE_TAKEN, 'shortcode': shortcode})
        return response_409(message=f"id '{shortcode}' already exists", error_code=SHORTCODE_TAKEN)
    except IDGenerationExhaustedError:
        logger.error('Could not find a free shortcode. Responding with 500.', extra={'event': SHORTCODE_GENERATION_FAILED})
        return response_500(message='could not generate a unique id', error_code=SHORTCODE_GENERATION_FAILED)

    # 4- Respond with short URL and deletion URL
    short_url = get_short_url(shortcode, event, settings.location)
    deletion_url = get_short_url(f'urls/{shortcode}/{encode_tag(deletion_tag)}', event, settings.location)
    logger.info('Shortened URL. Responding with 200.', extra={'event': SHORTEN_SUCCESS, 'shortcode': shortcode})
    return response_200(
        {
            'id': shortcode,
            'url': normalize_url(target_url),
            'short_url': short_url,
            'deletion_url': deletion_url,
        }
    )
