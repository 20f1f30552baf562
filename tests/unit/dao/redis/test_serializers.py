"""Unit tests for the Redis JSON record layout

Test coverage includes:
    1. Entry records
       - Field layout (remote_addr, password, public{...}) and optional fields.
       - Records written by older deployments (no created_on, no expiration) stay readable.
       - Timestamps without an offset are read as UTC.
       - Malformed records raise CorruptRecordError.
    2. Visitor records
       - UTM parameters are only written when present.
       - Malformed records raise CorruptRecordError.
"""

import base64
import json
from datetime import datetime, UTC

import pytest

from linkshortener.models import EntryModel, VisitorModel
from linkshortener.dao.exceptions import CorruptRecordError, DataStoreError
from linkshortener.dao.redis.serializers import dump_entry, load_entry, dump_visitor, load_visitor


CREATED = datetime(2025, 10, 15, 8, 0, tzinfo=UTC)
EXPIRES = datetime(2025, 11, 1, tzinfo=UTC)


# -------------------------------
# 1. Entry records
# -------------------------------


def test_dump_entry_layout():
    entry = EntryModel(
        target='https://example.com',
        shortcode='aBcD',
        password_hash=b'$2b$10$abcdefghijklmnopqrstuv',
        created_at=CREATED,
        expires_at=EXPIRES,
        remote_addr='203.0.113.7',
        visit_count=42,
    )

    record = json.loads(dump_entry(entry))

    assert record == {
        'remote_addr': '203.0.113.7',
        'password': base64.b64encode(b'$2b$10$abcdefghijklmnopqrstuv').decode('ascii'),
        'public': {
            'created_on': '2025-10-15T08:00:00+00:00',
            'visit_count': 0,
            'url': 'https://example.com',
            'expiration': '2025-11-01T00:00:00+00:00',
        },
    }


def test_dump_entry_omits_empty_optional_fields():
    record = json.loads(dump_entry(EntryModel(target='https://example.com', created_at=CREATED)))

    assert 'remote_addr' not in record
    assert 'password' not in record
    assert 'expiration' not in record['public']


def test_load_entry():
    entry = EntryModel(
        target='https://example.com',
        shortcode='aBcD',
        password_hash=b'hash',
        created_at=CREATED,
        expires_at=EXPIRES,
        remote_addr='203.0.113.7',
    )

    assert load_entry('aBcD', dump_entry(entry)) == entry


def test_load_entry_from_bytes():
    blob = dump_entry(EntryModel(target='https://example.com', created_at=CREATED)).encode('utf-8')

    assert load_entry('aBcD', blob).target == 'https://example.com'


def test_load_minimal_entry():
    entry = load_entry('aBcD', '{"public": {"url": "https://example.com", "visit_count": 7}}')

    assert entry.target == 'https://example.com'
    assert entry.created_at is None
    assert entry.expires_at is None
    assert entry.password_hash is None
    assert entry.visit_count == 0  # derived at read time, never trusted from the record


def test_load_entry_without_utc_offset():
    entry = load_entry(
        'aBcD',
        '{"public": {"url": "https://example.com", "created_on": "2025-10-15T00:00:00", "expiration": "2025-10-16T00:00:00"}}',
    )

    assert entry.created_at == datetime(2025, 10, 15, tzinfo=UTC)
    assert entry.expires_at == datetime(2025, 10, 16, tzinfo=UTC)
    assert entry.is_expired(datetime(2025, 10, 17, tzinfo=UTC))


@pytest.mark.parametrize(
    'blob',
    [
        'not json',
        '[]',
        '{}',
        '{"public": {}}',
        '{"public": {"url": "https://example.com", "created_on": "yesterday"}}',
        '{"public": {"url": "https://example.com"}, "password": "abc"}',
    ],
)
def test_load_corrupt_entry(blob):
    with pytest.raises(CorruptRecordError, match="Could not decode entry 'aBcD'."):
        load_entry('aBcD', blob)


def test_corrupt_record_error_is_a_data_store_error():
    assert issubclass(CorruptRecordError, DataStoreError)


# -------------------------------
# 2. Visitor records
# -------------------------------


def test_dump_visitor_layout():
    visitor = VisitorModel(ip='1.2.3.4', referer='https://ref.example', user_agent='curl/8.0', timestamp=CREATED, utm_source='mail')

    assert json.loads(dump_visitor(visitor)) == {
        'ip': '1.2.3.4',
        'referer': 'https://ref.example',
        'user_agent': 'curl/8.0',
        'timestamp': '2025-10-15T08:00:00+00:00',
        'utm_source': 'mail',
    }


def test_load_visitor():
    visitor = VisitorModel(ip='1.2.3.4', timestamp=CREATED, utm_campaign='launch', utm_term='shortener')

    assert load_visitor('aBcD', dump_visitor(visitor)) == visitor


def test_load_visitor_without_utc_offset():
    visitor = load_visitor('aBcD', '{"ip": "1.2.3.4", "timestamp": "2025-10-15T08:00:00"}')

    assert visitor.timestamp == CREATED
    assert visitor.timestamp.tzinfo is UTC


@pytest.mark.parametrize('blob', ['', '"1.2.3.4"', '{"referer": "x"}', '{"ip": "1.2.3.4", "timestamp": "noon"}'])
def test_load_corrupt_visitor(blob):
    with pytest.raises(CorruptRecordError, match="Could not decode visitor of entry 'aBcD'."):
        load_visitor('aBcD', blob)
