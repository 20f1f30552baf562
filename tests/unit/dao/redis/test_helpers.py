"""Unit tests for handle_redis_connection_error decorator.

Test coverage includes:
    1. Normal function execution
       - Ensures the wrapped method executes and returns its result.
    2. Error handling
       - Ensures Redis connection errors and timeouts are converted into DataStoreError.
       - Ensures other Redis command failures are converted into DataStoreError.
    3. Function metadata preservation
       - Confirms functools.wraps preserves the original function's name and docstring.
"""

from unittest.mock import MagicMock

import pytest
import redis

from linkshortener.dao.redis.helpers import handle_redis_connection_error, redis_address
from linkshortener.dao.exceptions import DataStoreError


class DummyDAO:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.redis = MagicMock()
        self.redis.connection_pool.connection_kwargs = {
            'host': 'localhost',
            'port': 6379,
            'db': 0,
        }

    @handle_redis_connection_error
    def run(self):
        if self.error is not None:
            raise self.error
        return 'OK'


# -------------------------------
# 1. Normal execution
# -------------------------------


def test_decorator_allows_normal_execution():
    """Ensure the wrapped function executes normally when no error occurs."""
    assert DummyDAO().run() == 'OK'


# -------------------------------
# 2. Error handling
# -------------------------------


@pytest.mark.parametrize(
    'error',
    [
        redis.exceptions.ConnectionError('Cannot connect'),
        redis.exceptions.TimeoutError('Timeout reading from socket'),
    ],
)
def test_decorator_transforms_redis_connection_error(error):
    """Ensure Redis connectivity errors are re-raised as DataStoreError."""
    with pytest.raises(DataStoreError, match="Can't connect to Redis at localhost:6379/0.") as exc_info:
        DummyDAO(error).run()

    assert exc_info.value.__cause__ is error


def test_decorator_transforms_redis_command_error():
    """Ensure other Redis failures never escape as raw redis exceptions."""
    with pytest.raises(DataStoreError, match=r'Redis command failed in run\(\): WRONGTYPE'):
        DummyDAO(redis.exceptions.ResponseError('WRONGTYPE')).run()


def test_decorator_does_not_touch_other_errors():
    with pytest.raises(KeyError):
        DummyDAO(KeyError('missing')).run()


# -------------------------------
# 3. Function metadata preservation
# -------------------------------


def test_decorator_preserves_function_metadata():
    """Ensure function name and docstring are preserved via functools.wraps."""

    @handle_redis_connection_error
    def sample_function():
        """This is a sample docstring."""

    assert sample_function.__name__ == 'sample_function'
    assert sample_function.__doc__ == 'This is a sample docstring.'


def test_redis_address(redis_client):
    assert redis_address(redis_client) == 'redis.test:6379/0'
