import json
from datetime import datetime, timedelta, timezone, UTC

import bcrypt
import pytest
from pytest import MonkeyPatch

from linkshortener.types import LambdaEvent
from linkshortener.models import EntryModel
from linkshortener.lambdas.shorten_url import app
from linkshortener.store import entry_store
from linkshortener.utils.signing import encode_tag


class TestShortenUrlHandler:

    @pytest.fixture(autouse=True)
    def setup(self, monkeypatch: MonkeyPatch, make_event, context, settings, store, dao, signer) -> None:
        # Patch Lambda dependencies
        monkeypatch.setattr(app, 'get_settings', lambda: settings)
        monkeypatch.setattr(app, 'get_store', lambda: store)
        monkeypatch.setattr(entry_store, 'generate_shortcode', lambda length: 'aBcD')

        self.make_event = make_event
        self.context = context
        self.dao = dao
        self.signer = signer

    def invoke(self, body: dict | str) -> tuple[int, dict]:
        event: LambdaEvent = self.make_event('/', body=body if isinstance(body, str) else json.dumps(body))
        response = app.lambda_handler(event, self.context)
        return response['statusCode'], json.loads(response['body'])

    def test_lambda_handler(self) -> None:
        status, body = self.invoke({'url': 'https://example.com/blog/post'})

        assert status == 200
        assert body == {
            'id': 'aBcD',
            'url': 'https://example.com/blog/post',
            'short_url': 'https://sho.rt/aBcD',
            'deletion_url': f'https://sho.rt/urls/aBcD/{encode_tag(self.signer.sign("aBcD"))}',
        }

        stored = self.dao.entries['aBcD']
        assert stored.target == 'https://example.com/blog/post'
        assert stored.remote_addr == '203.0.113.7'
        assert stored.password_hash is None
        assert stored.expires_at is None

    def test_lambda_handler_with_cors_headers(self) -> None:
        event = self.make_event('/', body=json.dumps({'url': 'https://example.com'}))

        response = app.lambda_handler(event, self.context)

        assert response['headers']['Content-Type'] == 'application/json'
        assert response['headers']['Access-Control-Allow-Origin'] == '*'

    def test_lambda_handler_with_all_options(self) -> None:
        status, body = self.invoke(
            {
                'url': 'https://example.com/a b',
                'id': 'my-link',
                'password': 'hunter2',
                'expiration': '2030-01-01T00:00:00',
            }
        )

        assert status == 200
        assert body['id'] == 'my-link'
        assert body['short_url'] == 'https://sho.rt/my-link'
        assert body['url'] == 'https://example.com/a%20b'

        stored = self.dao.entries['my-link']
        assert stored.target == 'https://example.com/a%20b'
        assert stored.expires_at == datetime(2030, 1, 1, tzinfo=UTC)
        assert bcrypt.checkpw(b'hunter2', stored.password_hash)

    @pytest.mark.parametrize('raw_body', ['{"url": ', '["https://example.com"]'])
    def test_lambda_handler_with_invalid_json(self, raw_body: str) -> None:
        status, body = self.invoke(raw_body)

        assert status == 400
        assert body['errorCode'] == 'INVALID_JSON'
        assert self.dao.entries == {}

    @pytest.mark.parametrize('payload', [{}, {'url': ''}, {'url': 42}])
    def test_lambda_handler_with_missing_url(self, payload: dict) -> None:
        status, body = self.invoke(payload)

        assert status == 400
        assert body['message'] == "Bad Request (missing 'url' in JSON body)"
        assert body['errorCode'] == 'MISSING_URL'

    @pytest.mark.parametrize('url', ['not a url', 'javascript:alert(1)', 'https://'])
    def test_lambda_handler_with_invalid_url(self, url: str) -> None:
        status, body = self.invoke({'url': url})

        assert status == 400
        assert body['errorCode'] == 'INVALID_URL'
        assert self.dao.entries == {}

    @pytest.mark.parametrize('shortcode', [1234, 'visits:aBcD', 'a b'])
    def test_lambda_handler_with_invalid_shortcode(self, shortcode) -> None:
        status, body = self.invoke({'url': 'https://example.com', 'id': shortcode})

        assert status == 400
        assert body['errorCode'] == 'INVALID_SHORTCODE'
        assert self.dao.entries == {}

    def test_lambda_handler_with_invalid_password(self) -> None:
        status, body = self.invoke({'url': 'https://example.com', 'password': 1234})

        assert status == 400
        assert body['errorCode'] == 'INVALID_PASSWORD'

    @pytest.mark.parametrize('expiration', ['tomorrow', 1767225600])
    def test_lambda_handler_with_invalid_expiration(self, expiration) -> None:
        status, body = self.invoke({'url': 'https://example.com', 'expiration': expiration})

        assert status == 400
        assert body['errorCode'] == 'INVALID_EXPIRATION'

    def test_lambda_handler_with_taken_shortcode(self) -> None:
        self.dao.insert(EntryModel(target='https://example.org', shortcode='my-link'))

        status, body = self.invoke({'url': 'https://example.com', 'id': 'my-link'})

        assert status == 409
        assert body['message'] == "Conflict (id 'my-link' already exists)"
        assert body['errorCode'] == 'SHORTCODE_TAKEN'
        assert self.dao.entries['my-link'].target == 'https://example.org'

    def test_lambda_handler_when_generation_is_exhausted(self) -> None:
        # Every generated candidate is 'aBcD', which is already taken
        self.dao.insert(EntryModel(target='https://example.org', shortcode='aBcD'))

        status, body = self.invoke({'url': 'https://example.com'})

        assert status == 500
        assert body['errorCode'] == 'SHORTCODE_GENERATION_FAILED'
        assert len(self.dao.insert_attempts) == 11

    def test_lambda_handler_with_unexpected_error(self, monkeypatch: MonkeyPatch) -> None:
        def broken_store():
            raise RuntimeError('store is down')

        monkeypatch.setattr(app, 'get_store', broken_store)

        status, body = self.invoke({'url': 'https://example.com'})

        assert status == 500
        assert body == {'message': 'Internal Server Error', 'errorCode': 'UNKNOWN_INTERNAL_SERVER_ERROR'}


@pytest.mark.parametrize(
    'value, expected',
    [
        (None, None),
        ('', None),
        ('2030-01-01T00:00:00', datetime(2030, 1, 1, tzinfo=UTC)),
        ('2030-01-01T02:00:00+02:00', datetime(2030, 1, 1, 2, tzinfo=timezone(timedelta(hours=2)))),
    ],
)
def test_parse_expiration(value, expected):
    assert app.parse_expiration(value) == expected


@pytest.mark.parametrize('value', ['next week', 1767225600, ['2030-01-01']])
def test_parse_expiration_with_invalid_value(value):
    with pytest.raises(ValueError):
        app.parse_expiration(value)
