from typing import cast

import pytest

from linkshortener.types import LambdaEvent, LambdaContext
from linkshortener.utils.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        backend='redis',
        backend_options={'host': 'redis.test', 'port': 6379, 'db': 0},
        signing_key=b'test-signing-key',
        id_length=4,
    )


@pytest.fixture
def request_context() -> dict:
    return {
        'domainName': 'sho.rt',
        'stage': 'prod',
        'identity': {'sourceIp': '203.0.113.7'},
    }


@pytest.fixture
def make_event(request_context):
    """Build an API Gateway proxy event for the given resource"""

    def _make_event(resource: str, path_parameters: dict | None = None, body: str | None = None, **extra) -> LambdaEvent:
        return cast(LambdaEvent, {
            'resource': resource,
            'pathParameters': path_parameters,
            'body': body,
            'requestContext': request_context,
            **extra,
        })

    return _make_event


@pytest.fixture
def context() -> LambdaContext:
    return cast(LambdaContext, {'function_name': 'linkshortener-test'})
