"""Unit tests for helper functions in helpers.py

Test coverage includes:
    1. base_url() for execute-api domains, custom domains, local invocations
       and a configured location prefix.
    2. get_short_url() joins base URL and shortcode.
    3. expiration_ttl() computes record lifetimes with a floor, as_utc() treats naive datetimes as UTC.
    4. require_environment() reports every missing or empty variable.
    5. guarantee_500_response() turns crashes into a logged 500 response.
"""

import json
import logging
from datetime import datetime, timedelta, timezone, UTC

import pytest
from freezegun import freeze_time

from linkshortener.constants import ENV
from linkshortener.exceptions import MissingEnvironmentVariableError
from linkshortener.utils.helpers import (
    base_url,
    get_short_url,
    as_utc,
    expiration_ttl,
    require_environment,
    guarantee_500_response,
)


# -------------------------------
# 1. base_url()
# -------------------------------


@pytest.mark.parametrize(
    'request_context, location, expected',
    [
        # execute-api domains keep the stage in the path
        ({'domainName': 'k3x9.execute-api.eu-central-1.amazonaws.com', 'stage': 'dev'}, '', 'https://k3x9.execute-api.eu-central-1.amazonaws.com/dev'),
        ({'domainName': 'k3x9.execute-api.eu-central-1.amazonaws.com', 'stage': 'prod'}, 'go', 'https://k3x9.execute-api.eu-central-1.amazonaws.com/prod/go'),
        # custom domains are mapped to a stage already
        ({'domainName': 'sho.rt', 'stage': 'prod'}, '', 'https://sho.rt'),
        ({'domainName': 'links.example.org', 'stage': 'dev'}, '', 'https://links.example.org'),
        # SAM local, tests
        ({}, '', 'http://localhost:3000'),
        ({'domainName': ''}, '', 'http://localhost:3000'),
        ({'stage': 'dev'}, 'go', 'http://localhost:3000/go'),
    ],
)
def test_base_url(request_context, location, expected):
    assert base_url({'requestContext': request_context}, location) == expected


def test_base_url_without_request_context():
    assert base_url({}) == 'http://localhost:3000'


@pytest.mark.parametrize('location', ['go', '/go', 'go/', '/go/'])
def test_base_url_normalizes_location(location):
    event = {'requestContext': {'domainName': 'sho.rt', 'stage': 'prod'}}
    assert base_url(event, location) == 'https://sho.rt/go'


# -------------------------------
# 2. Get short url string representation
# -------------------------------


@pytest.mark.parametrize(
    'shortcode, location, expected',
    [
        ('aBcD', '', 'https://sho.rt/aBcD'),
        ('XyZw', '', 'https://sho.rt/XyZw'),
        ('aBcD', 'go', 'https://sho.rt/go/aBcD'),
    ],
)
def test_get_short_url(shortcode, location, expected):
    """Ensure get_short_url() returns the correct short URL string."""
    event = {'requestContext': {'domainName': 'sho.rt', 'stage': 'Prod'}}
    assert get_short_url(shortcode, event, location) == expected


# -------------------------------
# 3. expiration_ttl() and as_utc()
# -------------------------------


def test_expiration_ttl_without_expiration():
    assert expiration_ttl(None) is None


@pytest.mark.parametrize(
    'expires_at, expected',
    [
        (datetime(2025, 10, 16, tzinfo=UTC), 86400),
        (datetime(2025, 10, 15, 0, 10, tzinfo=UTC), 600),
        (datetime(2025, 10, 15, 0, 0, 30, tzinfo=UTC), 60),
        (datetime(2025, 10, 14, tzinfo=UTC), 60),
    ],
)
@freeze_time('2025-10-15')
def test_expiration_ttl(expires_at, expected):
    assert expiration_ttl(expires_at) == expected


@freeze_time('2025-10-15 00:00:00.500')
def test_expiration_ttl_rounds_up():
    expires_at = datetime(2025, 10, 15, 1, tzinfo=UTC)
    assert expiration_ttl(expires_at) == 3600
    assert expiration_ttl(expires_at + timedelta(milliseconds=100)) == 3600


@pytest.mark.parametrize(
    'value, expected',
    [
        (None, None),
        (datetime(2025, 10, 15, 8), datetime(2025, 10, 15, 8, tzinfo=UTC)),
        (datetime(2025, 10, 15, 8, tzinfo=UTC), datetime(2025, 10, 15, 8, tzinfo=UTC)),
        # aware values keep their offset
        (datetime(2025, 10, 15, 10, tzinfo=timezone(timedelta(hours=2))), datetime(2025, 10, 15, 8, tzinfo=UTC)),
    ],
)
def test_as_utc(value, expected):
    result = as_utc(value)

    assert result == expected
    if value is not None and value.tzinfo is not None:
        assert result.tzinfo is value.tzinfo


@freeze_time('2025-10-15')
def test_expiration_ttl_with_naive_expiration():
    assert expiration_ttl(datetime(2025, 10, 16)) == 86400


# -------------------------------
# 4. require_environment()
# -------------------------------


APPCONFIG_IDS = (ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)


@require_environment(*APPCONFIG_IDS)
def appconfig_ids() -> tuple[str, ...]:
    return APPCONFIG_IDS


def test_require_environment_with_all_variables(monkeypatch):
    for name in APPCONFIG_IDS:
        monkeypatch.setenv(name, f'{name.lower()}-id')

    assert appconfig_ids() == APPCONFIG_IDS


@pytest.mark.parametrize(
    'present, missing',
    [
        ({}, APPCONFIG_IDS),
        ({ENV.AppConfig.APP_ID: 'app'}, APPCONFIG_IDS[1:]),
        ({ENV.AppConfig.APP_ID: 'app', ENV.AppConfig.ENV_ID: ''}, APPCONFIG_IDS[1:]),
        ({ENV.AppConfig.APP_ID: 'app', ENV.AppConfig.ENV_ID: 'dev'}, APPCONFIG_IDS[2:]),
    ],
)
def test_require_environment_lists_missing_variables(monkeypatch, present, missing):
    # _clean_env already removed every APPCONFIG_* variable
    for name, value in present.items():
        monkeypatch.setenv(name, value)

    missing_list = ', '.join(f"'{name}'" for name in missing)
    with pytest.raises(MissingEnvironmentVariableError) as exc_info:
        appconfig_ids()

    assert str(exc_info.value) == f'Missing required environment variables: {missing_list}'


# -------------------------------
# 5. guarantee_500_response()
# -------------------------------


class TestGuarantee500Response:

    def test_crash_becomes_500(self, caplog):
        @guarantee_500_response
        def lambda_handler(event, context):
            raise KeyError('pathParameters')

        with caplog.at_level(logging.ERROR, logger='linkshortener.utils.helpers'):
            response = lambda_handler({}, None)

        assert response['statusCode'] == 500
        assert json.loads(response['body']) == {'message': 'Internal Server Error', 'errorCode': 'UNKNOWN_INTERNAL_SERVER_ERROR'}

        [record] = caplog.records
        assert record.getMessage() == 'Unhandled error in lambda handler. Responding with 500.'
        assert record.error == 'KeyError'
        assert record.exc_info[0] is KeyError

    def test_responses_pass_through(self):
        @guarantee_500_response
        def lambda_handler(event, context):
            return {'statusCode': 302, 'headers': {'Location': 'https://example.com'}, 'body': '{}'}

        assert lambda_handler({}, None)['statusCode'] == 302

    def test_keeps_handler_name(self):
        @guarantee_500_response
        def lambda_handler(event, context):
            """Handle requests"""

        assert lambda_handler.__name__ == 'lambda_handler'
        assert lambda_handler.__doc__ == 'Handle requests'
