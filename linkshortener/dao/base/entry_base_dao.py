"""Abstract base class for entry data access objects (DAOs).

This class establishes a consistent contract for all entry DAO implementations,
regardless of the underlying storage mechanism (e.g., Redis, DynamoDB, PostgreSQL).
DAOs hold no business logic: URL validation, password hashing, shortcode generation
and expiration checks belong to the EntryStore.

Responsibilities:
    - Insert entries atomically ("insert if absent").
    - Retrieve entries merged with their derived visit statistics.
    - Maintain the append-only, newest-first visitor log of every entry.
    - Delete an entry together with its visitor log and index membership.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from linkshortener.models import EntryModel
        >>> from linkshortener.dao.redis import EntryRedisDAO

        >>> dao = EntryRedisDAO(...)

        >>> dao.insert(EntryModel(target='https://example.com/blog/article-123', shortcode='aBcD'))

        >>> retrieved = dao.get('aBcD')
        >>> print(retrieved.target)
        https://example.com/blog/article-123

        >>> print(retrieved.visit_count)
        0
"""

from abc import ABC, abstractmethod

from linkshortener.models import EntryModel, VisitorModel


class EntryBaseDAO(ABC):
    """Interface for entry data access objects (DAOs).

    Methods:
        insert(entry: EntryModel, **kwargs) -> EntryBaseDAO:
            Insert a new entry if its shortcode is free.
            Raises EntryAlreadyExistsError if the shortcode already exists.
            Raises DataStoreError on connection or write failure.

        get(shortcode: str, **kwargs) -> EntryModel:
            Retrieve an entry with derived visit_count and last_visit_at.
            Raises EntryNotFoundError if the entry does not exist.
            Raises DataStoreError on connection or read failure.

        all(**kwargs) -> dict[str, EntryModel]:
            Retrieve every stored entry keyed by shortcode.
            Unreadable entries are skipped, not reported.

        delete(shortcode: str, **kwargs) -> bool:
            Remove an entry, its visitor log and index membership.
            An already absent entry is not an error.

        add_visitor(shortcode: str, visit_id: str, visitor: VisitorModel, ttl: int | None, **kwargs) -> None:
            Append a visitor to the entry's visitor log.

        visitors(shortcode: str, **kwargs) -> list[VisitorModel]:
            Retrieve the visitor log, newest first.

        hit(shortcode: str, **kwargs) -> None:
            Record a visit in a dedicated counter, if the backend keeps one.

        close() -> None:
            Release the underlying connection. Idempotent.

    Subclassing:
        Datastore-specific implementations (e.g., EntryRedisDAO) must extend
        this class and implement all abstract methods.

    NOTE:
        - visit_count and last_visit_at are never stored on the entry record.
          Implementations derive them from the visitor log on every read.
    """

    @abstractmethod
    def insert(self, entry: EntryModel, **kwargs) -> 'EntryBaseDAO':
        """Insert a new entry into the data store.

        The insert must be atomic: when two callers race for the same shortcode,
        exactly one of them succeeds and the other one gets EntryAlreadyExistsError.

        Args:
            entry (EntryModel):
                The entry to insert. Its shortcode must be set.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            EntryBaseDAO: self (for method chaining)

        Raises:
            EntryAlreadyExistsError:
                If an entry with the same shortcode already exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def get(self, shortcode: str, **kwargs) -> EntryModel:
        """Retrieve an entry from the data store by its shortcode.

        A failure to read the visitor log must not fail the whole read: it only
        degrades visit_count to 0 and last_visit_at to the Unix epoch.

        Args:
            shortcode (str):
                The shortcode of the entry to be retrieved.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            EntryModel: The entry, including derived visit statistics.

        Raises:
            EntryNotFoundError:
                If no entry with the given shortcode exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def all(self, **kwargs) -> dict[str, EntryModel]:
        """Retrieve every stored entry keyed by shortcode.

        A per-entry read failure skips that entry with a logged warning instead
        of failing the whole listing.

        Raises:
            DataStoreError:
                If the listing itself cannot be read.
        """
        pass

    @abstractmethod
    def delete(self, shortcode: str, **kwargs) -> bool:
        """Delete an entry, its visitor log and any index membership.

        Returns:
            bool: True if an entry was removed, False if it was already gone.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def add_visitor(self, shortcode: str, visit_id: str, visitor: VisitorModel, ttl: int | None = None, **kwargs) -> None:
        """Append a visitor to the head of the entry's visitor log.

        Args:
            shortcode (str):
                Shortcode of the visited entry.

            visit_id (str):
                Random identifier of this visit (for tracing only).

            visitor (VisitorModel):
                The visit to record.

            ttl (int | None):
                Optional lifetime of the visitor log in seconds.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def visitors(self, shortcode: str, **kwargs) -> list[VisitorModel]:
        """Retrieve the full visitor log of an entry, newest first.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def hit(self, shortcode: str, **kwargs) -> None:
        """Count a visit for backends that keep a dedicated counter.

        Backends deriving visit_count from the visitor log implement this as a no-op.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the connection to the data store. Calling it twice is harmless."""
        pass
