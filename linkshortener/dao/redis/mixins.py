"""Redis client plumbing shared by the Redis-backed DAOs

RedisClientMixin owns the client of a DAO: it builds one from the backend
options of the AppConfig document (or takes a ready client, as the tests do),
pings it once so that a misconfigured Lambda fails at cold start, and closes it.

Example:
    >>> class EntryRedisDAO(RedisClientMixin, EntryBaseDAO):
    ...     pass
    ...
    >>> dao = EntryRedisDAO(redis_host='redis.local', prefix='linkshortener:dev')
    >>> dao.keys.entry_key('aBcD')
    'linkshortener:dev:entry:aBcD'
"""

import logging
from typing import Optional

import redis

from linkshortener.dao.redis.redis_key_schema import RedisKeySchema
from linkshortener.dao.redis.helpers import redis_address
from linkshortener.dao.exceptions import DataStoreError


logger = logging.getLogger(__name__)


class RedisClientMixin:
    """Client setup, health check and teardown for Redis-backed DAOs

    Attributes:
        redis (redis.Redis):
            Client (or pipeline-compatible mock) used by the DAO methods.
        keys (RedisKeySchema):
            Builds the namespaced keys of entries, visitor logs and the index.
    """

    def __init__(
        self,
        redis_host: Optional[str] = 'localhost',
        redis_port: Optional[int | str] = 6379,
        redis_db: Optional[int | str] = 0,
        redis_decode_responses: Optional[bool] = True,
        redis_username: Optional[str] = None,
        redis_password: Optional[str] = None,
        redis_socket_timeout: Optional[float] = 3.0,
        redis_socket_connect_timeout: Optional[float] = 3.0,
        redis_client: Optional[redis.Redis] = None,
        prefix: Optional[str] = None,
    ):
        """Connect to Redis and verify the connection

        The `redis_*` keywords mirror the "redis" section of a lambda's AppConfig
        configuration (see dao.factory.create_entry_dao). Port and db may arrive as
        strings. They are ignored when `redis_client` is given.

        Raises:
            DataStoreError:
                If Redis does not answer the initial PING.
        """
        if redis_client is None:
            redis_client = redis.Redis(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                decode_responses=redis_decode_responses,
                username=redis_username,
                password=redis_password,
                socket_timeout=redis_socket_timeout,
                socket_connect_timeout=redis_socket_connect_timeout,
            )

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)
        self._closed = False

        self._heatlhcheck()

    def _heatlhcheck(self, raise_error: bool = True) -> bool:
        """PING Redis; with raise_error=False report failure as False instead of raising"""
        try:
            self.redis.ping()
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            logger.error('Redis health check failed.', extra={'redis': redis_address(self.redis), 'reason': str(e)})
            if raise_error:
                raise DataStoreError(f"Can't connect to Redis at {redis_address(self.redis)}. Health check failed.") from e
            return False
        return True

    def close(self) -> None:
        """Close the client and release its connection pool; later calls do nothing

        Raises:
            DataStoreError:
                If the client fails to disconnect cleanly.
        """
        if self._closed:
            return

        try:
            self.redis.close()
        except redis.exceptions.RedisError as e:
            logger.error('Could not close the Redis connection.', extra={'reason': str(e)})
            raise DataStoreError('Could not close the Redis connection.') from e
        finally:
            self._closed = True
