import logging
import functools
from datetime import datetime
from typing import Any

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.models import EntryModel, VisitorModel, UTM_FIELDS
from linkshortener.store import EntryStore, create_entry_store
from linkshortener.dao.exceptions import EntryNotFoundError
from linkshortener.utils import Settings, load_settings, get_short_url, encode_tag, initialize_logging, guarantee_500_response
from linkshortener.lambdas.responses import response_200, response_400, response_404
from linkshortener.lambdas.lookup_url.constants import (
    MISSING_SHORTCODE,
    ENTRY_NOT_FOUND,
    UNKNOWN_RESOURCE,
    LOOKUP_SUCCESS,
)


initialize_logging()
logger = logging.getLogger(__name__)


@functools.cache
def get_settings() -> Settings:
    return load_settings('lookup_url')


@functools.cache
def get_store() -> EntryStore:
    return create_entry_store(get_settings())


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def entry_view(entry: EntryModel, event: LambdaEvent, location: str = '') -> dict[str, Any]:
    """Public representation of an entry; the password hash is never exposed"""
    return {
        'id': entry.shortcode,
        'url': entry.target,
        'short_url': get_short_url(entry.shortcode, event, location),
        'created_on': _isoformat(entry.created_at),
        'expiration': _isoformat(entry.expires_at),
        'visit_count': entry.visit_count,
        'last_visit': _isoformat(entry.last_visit_at),
        'password_protected': entry.is_password_protected(),
        'expired': entry.is_expired(),
    }


def visitor_view(visitor: VisitorModel) -> dict[str, Any]:
    view = {
        'ip': visitor.ip,
        'referer': visitor.referer,
        'user_agent': visitor.user_agent,
        'timestamp': _isoformat(visitor.timestamp),
    }
    view.update({field: getattr(visitor, field) for field in UTM_FIELDS})
    return view


def get_entry_info(event: LambdaEvent, shortcode: str) -> LambdaResponse:
    try:
        entry = get_store().get_entry(shortcode)
    except EntryNotFoundError:
        logger.info('Entry not found. Responding with 404.', extra={'shortcode': shortcode, 'event': ENTRY_NOT_FOUND})
        return response_404(message=f"no entry with id '{shortcode}'", error_code=ENTRY_NOT_FOUND)
    return response_200(entry_view(entry, event, get_settings().location))


def get_entry_visitors(event: LambdaEvent, shortcode: str) -> LambdaResponse:
    store = get_store()
    try:
        store.get_entry(shortcode)
    except EntryNotFoundError:
        logger.info('Entry not found. Responding with 404.', extra={'shortcode': shortcode, 'event': ENTRY_NOT_FOUND})
        return response_404(message=f"no entry with id '{shortcode}'", error_code=ENTRY_NOT_FOUND)

    visitors = store.get_visitors(shortcode)
    return response_200({'id': shortcode, 'visitors': [visitor_view(v) for v in visitors]})


def list_entries(event: LambdaEvent) -> LambdaResponse:
    store = get_store()
    location = get_settings().location

    entries = []
    for shortcode, entry in store.get_entries().items():
        view = entry_view(entry, event, location)
        tag = encode_tag(store.deletion_tag(shortcode))
        view['deletion_url'] = get_short_url(f'urls/{shortcode}/{tag}', event, location)
        entries.append(view)
    return response_200({'entries': entries})


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle read-only lookups of entries

    Routes (API Gateway `resource`):
        GET /urls                        listing of every entry with its deletion URL
        GET /urls/{shortcode}            entry info
        GET /urls/{shortcode}/visitors   visitor log, newest first

    HTTP responses:
        200: Lookup result
        400: Missing shortcode or unknown resource
        404: No entry with this shortcode
        500: Internal server error
    """
    resource = event.get('resource', '')
    shortcode = (event.get('pathParameters') or {}).get('shortcode')

    if resource == '/urls':
        response = list_entries(event)
    elif resource in {'/urls/{shortcode}', '/urls/{shortcode}/visitors'}:
        if not shortcode:
            logger.info('Missing "shortcode" in path. Responding with 400.', extra={'event': MISSING_SHORTCODE})
            return response_400(message="missing 'shortcode' in path", error_code=MISSING_SHORTCODE)
        if resource.endswith('/visitors'):
            response = get_entry_visitors(event, shortcode)
        else:
            response = get_entry_info(event, shortcode)
    else:
        logger.info('Unknown resource. Responding with 400.', extra={'resource': resource, 'event': UNKNOWN_RESOURCE})
        return response_400(message=f"unknown resource '{resource}'", error_code=UNKNOWN_RESOURCE)

    if response['statusCode'] == 200:
        logger.info('Lookup succeeded. Responding with 200.', extra={'resource': resource, 'event': LOOKUP_SUCCESS})
    return response
