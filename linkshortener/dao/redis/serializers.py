"""JSON encoding of entries and visitors as stored in Redis

Entry record ("entry:<id>"):

    {
        "remote_addr": "203.0.113.7",          # omitted when unknown
        "password": "<base64 bcrypt hash>",     # omitted when not protected
        "public": {
            "created_on": "2025-10-15T00:00:00+00:00",
            "expiration": "2025-11-01T00:00:00+00:00",   # omitted when never expiring
            "visit_count": 0,
            "url": "https://example.com"
        }
    }

Visitor record (element of "entry:visits:<id>"):

    {"ip": "1.2.3.4", "referer": "", "user_agent": "", "timestamp": "...", "utm_source": "..."}

visit_count and last_visit_at are derived at read time, so they are never
written with a meaningful value.
"""

import base64
import binascii
import json
from datetime import datetime

from linkshortener.types import RedisBlob, EntryRecord, VisitorRecord
from linkshortener.models import EntryModel, VisitorModel, UTM_FIELDS
from linkshortener.dao.exceptions import CorruptRecordError
from linkshortener.utils.helpers import as_utc


def _dump_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _load_datetime(value: str | None) -> datetime | None:
    # Records written without an offset are UTC
    return as_utc(datetime.fromisoformat(value)) if value else None


def dump_entry(entry: EntryModel) -> str:
    public = {
        'created_on': _dump_datetime(entry.created_at),
        'visit_count': 0,
        'url': entry.target,
    }
    if entry.expires_at is not None:
        public['expiration'] = _dump_datetime(entry.expires_at)

    record: EntryRecord = {}
    if entry.remote_addr:
        record['remote_addr'] = entry.remote_addr
    if entry.password_hash:
        record['password'] = base64.b64encode(entry.password_hash).decode('ascii')
    record['public'] = public
    return json.dumps(record)


def load_entry(shortcode: str, blob: RedisBlob) -> EntryModel:
    """Decode an entry record

    Raises:
        CorruptRecordError:
            If the blob is not a well-formed entry record.
    """
    try:
        record = json.loads(blob)
        public = record['public']
        password = record.get('password')
        return EntryModel(
            target=public['url'],
            shortcode=shortcode,
            password_hash=base64.b64decode(password) if password else None,
            created_at=_load_datetime(public.get('created_on')),
            expires_at=_load_datetime(public.get('expiration')),
            remote_addr=record.get('remote_addr') or None,
        )
    except (ValueError, KeyError, TypeError, binascii.Error) as e:
        raise CorruptRecordError(f"Could not decode entry '{shortcode}'.") from e


def dump_visitor(visitor: VisitorModel) -> str:
    record: VisitorRecord = {
        'ip': visitor.ip,
        'referer': visitor.referer,
        'user_agent': visitor.user_agent,
        'timestamp': _dump_datetime(visitor.timestamp),
    }
    for field in UTM_FIELDS:
        if value := getattr(visitor, field):
            record[field] = value
    return json.dumps(record)


def load_visitor(shortcode: str, blob: RedisBlob) -> VisitorModel:
    """Decode a visitor record

    Raises:
        CorruptRecordError:
            If the blob is not a well-formed visitor record.
    """
    try:
        record = json.loads(blob)
        return VisitorModel(
            ip=record['ip'],
            referer=record.get('referer') or '',
            user_agent=record.get('user_agent') or '',
            timestamp=_load_datetime(record.get('timestamp')),
            **{field: record.get(field) or '' for field in UTM_FIELDS},
        )
    except (ValueError, KeyError, TypeError) as e:
        raise CorruptRecordError(f"Could not decode visitor of entry '{shortcode}'.") from e
