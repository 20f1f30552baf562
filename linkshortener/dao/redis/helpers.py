import functools
from typing import Any
from collections.abc import Callable

import redis

from linkshortener.dao.exceptions import DataStoreError


__all__ = ['handle_redis_connection_error', 'redis_address']


def redis_address(client: redis.Redis) -> str:
    """'host:port/db' of the server behind `client`, for error messages and logs"""
    info = client.connection_pool.connection_kwargs
    return f"{info.get('host')}:{info.get('port')}/{info.get('db')}"


def handle_redis_connection_error[F: Callable[..., Any]](method: F) -> F:
    """Turn redis-py exceptions raised by a DAO method into DataStoreError

    Connection errors and timeouts name the unreachable server. Any other Redis
    failure (e.g. WRONGTYPE, an aborted transaction) names the DAO method, so
    callers above the DAO only ever have to handle DAOError.

    Example:
        >>> @handle_redis_connection_error
        ... def visitors(self, shortcode):
        ...     return self.redis.lrange(self.keys.entry_visits_key(shortcode), 0, -1)
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            raise DataStoreError(f"Can't connect to Redis at {redis_address(self.redis)}.") from e
        except redis.exceptions.RedisError as e:
            raise DataStoreError(f'Redis command failed in {method.__name__}(): {e}') from e

    return wrapper
