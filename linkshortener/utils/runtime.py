import os

from linkshortener.types import LambdaEvent
from linkshortener.models import VisitorModel, UTM_FIELDS
from linkshortener.constants import ENV


def running_locally() -> bool:
    """Return True if running in SAM local invoke/api, False otherwise."""
    env = os.getenv(ENV.App.APP_ENV, '').lower()
    return env == 'local' or os.getenv(ENV.App.AWS_SAM_LOCAL) == 'true'


def get_header(event: LambdaEvent, name: str) -> str:
    """Case-insensitive lookup of a request header."""
    headers = event.get('headers') or {}
    name = name.lower()
    return next((value for key, value in headers.items() if key.lower() == name), '') or ''


def get_client_ip(event: LambdaEvent) -> str:
    identity = event.get('requestContext', {}).get('identity', {})
    return identity.get('sourceIp') or ''


def get_visitor(event: LambdaEvent) -> VisitorModel:
    """Build the visitor record of a redirect request.

    The timestamp is left empty, the entry store stamps it when registering the visit.
    """
    query = event.get('queryStringParameters') or {}
    return VisitorModel(
        ip=get_client_ip(event),
        referer=get_header(event, 'Referer'),
        user_agent=get_header(event, 'User-Agent'),
        **{field: query.get(field) or '' for field in UTM_FIELDS},
    )
