"""Data Access Object (DAO) implementation for managing entries in Redis

This module provides a Redis-based implementation of EntryBaseDAO for CRUD-like
operations with EntryModel and VisitorModel instances.

Responsibilities:
    - Insert entries with Redis' native conditional write (SET NX);
    - Retrieve entries and derive their visit statistics from the visitor log;
    - Maintain the per-entry visitor log (newest first) and the entries index;
    - Delete an entry with all associated data in a single transaction;
    - Translate Redis failures into DAO exceptions.

Key layout (see RedisKeySchema):
    entry:<id>           -> JSON entry record (string), optional TTL
    entry:visits:<id>    -> JSON visitor records (list, LPUSH => newest first)
    entries              -> shortcodes of all entries (set)

Classes:
    EntryRedisDAO:
        DAO for storing and retrieving EntryModel in a Redis datastore.

Example:
    >>> from linkshortener.models import EntryModel, VisitorModel
    >>> from linkshortener.dao.redis import EntryRedisDAO

    >>> dao = EntryRedisDAO(prefix="app:dev")
    >>> dao.insert(EntryModel(target="https://example.com/page", shortcode="aBcD"))
    <EntryRedisDAO>

    >>> dao.add_visitor("aBcD", "5f0c...", VisitorModel(ip="1.2.3.4"))
    >>> retrieved = dao.get("aBcD")
    >>> retrieved.target
    'https://example.com/page'
    >>> retrieved.visit_count
    1
"""

import logging

import redis
from beartype import beartype

from linkshortener.models import EntryModel, VisitorModel, EPOCH
from linkshortener.dao.base import EntryBaseDAO
from linkshortener.dao.redis.mixins import RedisClientMixin
from linkshortener.dao.redis.helpers import handle_redis_connection_error
from linkshortener.dao.redis.serializers import dump_entry, load_entry, dump_visitor, load_visitor
from linkshortener.dao.exceptions import CorruptRecordError, DataStoreError, EntryAlreadyExistsError, EntryNotFoundError
from linkshortener.utils.helpers import expiration_ttl


logger = logging.getLogger(__name__)


class EntryRedisDAO(RedisClientMixin, EntryBaseDAO):
    """Redis-based Data Access Object (DAO) for managing entries

    This class implements the EntryBaseDAO interface using Redis as a data store.

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    Methods:
        insert(entry: EntryModel, **kwargs) -> EntryRedisDAO:
            Insert an entry and register it in the entries index.
            Raises EntryAlreadyExistsError when the shortcode is taken.

        get(shortcode: str, **kwargs) -> EntryModel:
            Retrieve an entry with visit_count and last_visit_at derived from its visitor log.
            Raises EntryNotFoundError when the shortcode doesn't exist.

        all(**kwargs) -> dict[str, EntryModel]:
            Retrieve every indexed entry, skipping unreadable ones.

        delete(shortcode: str, **kwargs) -> bool:
            Delete an entry, its visitor log and its index membership at once.

        add_visitor(shortcode: str, visit_id: str, visitor: VisitorModel, ttl: int | None, **kwargs) -> None:
            Push a visitor onto the head of the visitor log.

        visitors(shortcode: str, **kwargs) -> list[VisitorModel]:
            Retrieve the visitor log, newest first.

        hit(shortcode: str, **kwargs) -> None:
            No-op, the visit count is the length of the visitor log.

        All methods raise DataStoreError on connectivity issues with Redis.
    """

    @handle_redis_connection_error
    @beartype
    def insert(self, entry: EntryModel, **kwargs) -> 'EntryRedisDAO':
        """Insert an entry into Redis unless its shortcode is already taken

        The record is written with SET NX, so the existence check and the write are
        a single server-side operation. Two concurrent creators of the same shortcode
        can never overwrite each other: exactly one SET succeeds.

        Args:
            entry (EntryModel):
                The entry to insert. Its shortcode must be set.
            **kwargs:
                Optional keyword arguments (for future use).

        Returns:
            EntryRedisDAO: self (for method chaining)

        Raises:
            EntryAlreadyExistsError:
                If an entry with the same shortcode already exists.
            DataStoreError:
                If a Redis connection issue occurs during the transaction.

        Example:
            >>> dao.insert(EntryModel(target='https://example.com', shortcode='aBcD'))
            <EntryRedisDAO>
        """
        entry_key = self.keys.entry_key(entry.shortcode)
        index_key = self.keys.entries_index_key()

        # NOTE: SET NX and SADD run in one MULTI/EXEC. When SET NX loses the race,
        #       the SADD is harmless: the winner already put the shortcode in the index.
        with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(entry_key, dump_entry(entry), nx=True, ex=expiration_ttl(entry.expires_at))
            pipe.sadd(index_key, entry.shortcode)
            created, _ = pipe.execute()

        if not created:
            logger.debug('Entry already exists.', extra={'shortcode': entry.shortcode})
            raise EntryAlreadyExistsError(f"Entry with shortcode '{entry.shortcode}' already exists.")

        logger.debug('Created entry.', extra={'shortcode': entry.shortcode, 'key': entry_key})
        return self

    @handle_redis_connection_error
    @beartype
    def get(self, shortcode: str, **kwargs) -> EntryModel:
        """Retrieve a stored entry by shortcode

        Fetches the entry record, the visitor log length and the newest visitor in a
        single round trip. The derived fields are computed here so that a visit never
        rewrites the entry record.

        Args:
            shortcode (str):
                The shortcode identifier of the entry.
            **kwargs:
                Optional keyword arguments (for future use).

        Returns:
            EntryModel:
                The entry with visit_count and last_visit_at populated.

        Raises:
            EntryNotFoundError:
                If the entry does not exist in Redis.
            CorruptRecordError:
                If the entry record cannot be decoded.
            DataStoreError:
                If Redis connectivity issues occur.

        Example:
            >>> dao.get('aBcD')
            EntryModel(target='https://example.com', shortcode='aBcD', visit_count=3, ...)
        """
        entry_key = self.keys.entry_key(shortcode)
        visits_key = self.keys.entry_visits_key(shortcode)

        # NOTE: raise_on_error=False returns per-command errors as values, so a
        #       broken visitor log (e.g. WRONGTYPE) only degrades the derived fields.
        with self.redis.pipeline(transaction=False) as pipe:
            pipe.get(entry_key)
            pipe.llen(visits_key)
            pipe.lindex(visits_key, 0)
            blob, visit_count, last_visitor = pipe.execute(raise_on_error=False)

        if isinstance(blob, Exception):
            raise DataStoreError(f"Could not read entry '{shortcode}'.") from blob
        if blob is None:
            raise EntryNotFoundError(f"Entry with shortcode '{shortcode}' not found.")

        entry = load_entry(shortcode, blob)

        if isinstance(visit_count, Exception):
            logger.warning('Could not get length of visitor log.', extra={'shortcode': shortcode, 'reason': str(visit_count)})
            visit_count = 0

        last_visit_at = EPOCH
        if isinstance(last_visitor, Exception):
            logger.warning('Could not fetch newest visitor.', extra={'shortcode': shortcode, 'reason': str(last_visitor)})
        elif last_visitor is not None:
            try:
                last_visit_at = load_visitor(shortcode, last_visitor).timestamp or EPOCH
            except CorruptRecordError as e:
                logger.warning('Could not decode newest visitor.', extra={'shortcode': shortcode, 'reason': str(e)})

        return EntryModel(
            target=entry.target,
            shortcode=entry.shortcode,
            password_hash=entry.password_hash,
            created_at=entry.created_at,
            expires_at=entry.expires_at,
            remote_addr=entry.remote_addr,
            visit_count=int(visit_count),
            last_visit_at=last_visit_at,
        )

    @handle_redis_connection_error
    def all(self, **kwargs) -> dict[str, EntryModel]:
        """Retrieve every entry referenced by the entries index

        Index members whose record has expired (Redis TTL) are removed from the index.
        Entries which cannot be read (corrupt record, WRONGTYPE, ...) are skipped.
        Both cases are logged, neither fails the listing.

        Returns:
            dict[str, EntryModel]:
                Entries keyed by shortcode, in shortcode order.

        Raises:
            DataStoreError:
                If Redis connectivity issues occur.
        """
        index_key = self.keys.entries_index_key()
        entries = {}

        members = (m.decode('utf-8') if isinstance(m, bytes) else m for m in self.redis.smembers(index_key))
        for shortcode in sorted(members):
            try:
                entries[shortcode] = self.get(shortcode)
            except EntryNotFoundError:
                logger.warning('Indexed entry is gone, dropping it from the index.', extra={'shortcode': shortcode})
                self.redis.srem(index_key, shortcode)
            except DataStoreError as e:
                # An unreachable server fails every entry alike
                if isinstance(e.__cause__, (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError)):
                    raise
                logger.warning('Skipping unreadable entry.', extra={'shortcode': shortcode, 'reason': str(e)})

        return entries

    @handle_redis_connection_error
    @beartype
    def delete(self, shortcode: str, **kwargs) -> bool:
        """Delete an entry, its visitor log and its index membership

        The three commands run in one MULTI/EXEC: either all of them are applied or,
        when the transaction fails, none of them is and DataStoreError is raised.
        No orphaned visitor log can be left behind by a half-finished deletion.

        Args:
            shortcode (str):
                The shortcode identifier of the entry.

        Returns:
            bool:
                True if the entry existed, False if it was already gone.

        Raises:
            DataStoreError:
                If Redis connectivity issues occur.
        """
        with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(self.keys.entry_key(shortcode))
            pipe.delete(self.keys.entry_visits_key(shortcode))
            pipe.srem(self.keys.entries_index_key(), shortcode)
            removed, _, _ = pipe.execute()

        if not removed:
            logger.warning("Tried to delete entry but it's already gone.", extra={'shortcode': shortcode})
            return False

        logger.debug('Deleted entry.', extra={'shortcode': shortcode})
        return True

    @handle_redis_connection_error
    @beartype
    def add_visitor(self, shortcode: str, visit_id: str, visitor: VisitorModel, ttl: int | None = None, **kwargs) -> None:
        """Push a visitor onto the head of the visitor log

        Args:
            shortcode (str):
                Shortcode of the visited entry.
            visit_id (str):
                Random identifier of this visit, used for log correlation.
            visitor (VisitorModel):
                The visit to record.
            ttl (int | None):
                If given, the visitor log expires after this many seconds
                (aligned with the entry's own expiration).

        Raises:
            DataStoreError:
                If Redis connectivity issues occur.
        """
        visits_key = self.keys.entry_visits_key(shortcode)

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.lpush(visits_key, dump_visitor(visitor))
            if ttl:
                pipe.expire(visits_key, ttl)
            pipe.execute()

        logger.debug('Registered visitor.', extra={'shortcode': shortcode, 'visitId': visit_id})

    @handle_redis_connection_error
    @beartype
    def visitors(self, shortcode: str, **kwargs) -> list[VisitorModel]:
        """Retrieve the full visitor log of an entry, newest first

        TODO: switch to paginated LRANGE windows once visitor logs grow large.

        Raises:
            CorruptRecordError:
                If a visitor record cannot be decoded.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        blobs = self.redis.lrange(self.keys.entry_visits_key(shortcode), 0, -1)
        return [load_visitor(shortcode, blob) for blob in blobs]

    def hit(self, shortcode: str, **kwargs) -> None:
        """No-op: the visit count is derived with LLEN on the visitor log.

        LLEN and LINDEX 0 are both O(1), so get() can compute visit_count and
        last_visit_at without a separate counter key.
        """
        return None
