from linkshortener.dao.redis.redis_key_schema import RedisKeySchema
from linkshortener.dao.redis.mixins import RedisClientMixin
from linkshortener.dao.redis.entry_redis_dao import EntryRedisDAO


__all__ = [
    'RedisKeySchema',
    'RedisClientMixin',
    'EntryRedisDAO',
]
