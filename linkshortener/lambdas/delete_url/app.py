import logging
import functools

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.store import EntryStore, create_entry_store
from linkshortener.exceptions import AuthorizationFailedError
from linkshortener.utils import load_settings, decode_tag, initialize_logging, guarantee_500_response
from linkshortener.lambdas.responses import response_200, response_400, response_403
from linkshortener.lambdas.delete_url.constants import (
    MISSING_PATH_PARAMETERS,
    MALFORMED_DELETION_TAG,
    DELETION_NOT_AUTHORIZED,
    DELETE_SUCCESS,
)


initialize_logging()
logger = logging.getLogger(__name__)


@functools.cache
def get_store() -> EntryStore:
    return create_entry_store(load_settings('delete_url'))


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle DELETE /urls/{shortcode}/{tag}

    Deleting an entry that is already gone succeeds, as long as the tag matches.

    HTTP responses:
        200: Entry deleted
        400: Missing path parameters or malformed deletion tag
        403: Deletion tag does not belong to the shortcode
        500: Internal server error
    """
    params = event.get('pathParameters') or {}
    shortcode = params.get('shortcode')
    encoded_tag = params.get('tag')
    if not shortcode or not encoded_tag:
        logger.info('Missing path parameters. Responding with 400.', extra={'event': MISSING_PATH_PARAMETERS})
        return response_400(message="missing 'shortcode' or 'tag' in path", error_code=MISSING_PATH_PARAMETERS)

    try:
        tag = decode_tag(encoded_tag)
    except ValueError:
        logger.info('Malformed deletion tag. Responding with 400.', extra={'shortcode': shortcode, 'event': MALFORMED_DELETION_TAG})
        return response_400(message='malformed deletion tag', error_code=MALFORMED_DELETION_TAG)

    try:
        get_store().delete_entry(shortcode, tag)
    except AuthorizationFailedError:
        logger.info('Deletion not authorized. Responding with 403.', extra={'shortcode': shortcode, 'event': DELETION_NOT_AUTHORIZED})
        return response_403(message='deletion tag does not match', error_code=DELETION_NOT_AUTHORIZED)

    logger.info('Deleted entry. Responding with 200.', extra={'shortcode': shortcode, 'event': DELETE_SUCCESS})
    return response_200({'message': f"Deleted entry '{shortcode}'", 'id': shortcode})
