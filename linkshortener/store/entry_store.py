"""Entry store: lifecycle of shortened URLs on top of an EntryBaseDAO

The EntryStore owns the business rules of the service: URL validation, password
hashing, shortcode generation with bounded collision retries, deletion
authorization through deletion tags, read-time expiration and visit registration.
Storage itself is delegated to the DAO, which guarantees atomic "insert if absent".

Classes:
    EntryStore:
        Orchestrates DAO, shortcode generator, Signer and VisitDispatcher.

Functions:
    create_entry_store(settings) -> EntryStore
        Wire an EntryStore from immutable Settings.

Example:
    >>> store = create_entry_store(load_settings('shorten_url'))
    >>> shortcode, tag = store.create_entry(EntryModel(target='https://example.com'))
    >>> store.get_entry(shortcode).target
    'https://example.com'
    >>> store.delete_entry(shortcode, tag)
"""

import logging
import re
import uuid
import urllib.parse
from dataclasses import replace
from datetime import datetime, UTC

import bcrypt
from beartype import beartype

from linkshortener.constants import Defaults
from linkshortener.models import EntryModel, VisitorModel
from linkshortener.dao.base import EntryBaseDAO
from linkshortener.dao.factory import create_entry_dao
from linkshortener.dao.exceptions import DAOError, EntryAlreadyExistsError, EntryNotFoundError
from linkshortener.exceptions import (
    AuthorizationFailedError,
    EntryExpiredError,
    IDGenerationExhaustedError,
    InvalidShortcodeError,
    InvalidURLError,
)
from linkshortener.store.visits import VisitDispatcher
from linkshortener.utils.config import Settings
from linkshortener.utils.helpers import as_utc, expiration_ttl
from linkshortener.utils.shortener import generate_shortcode
from linkshortener.utils.signing import Signer


logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = frozenset({'http', 'https', 'ftp'})

# Caller-chosen shortcodes must not be able to reach other key spaces (e.g. "visits:<id>")
SHORTCODE_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


def normalize_url(url: str) -> str:
    """Percent-encode spaces and check that `url` is an absolute URL

    Raises:
        InvalidURLError: If the URL has no supported scheme or no host.

    Example:
        >>> normalize_url('https://example.com/a b')
        'https://example.com/a%20b'
    """
    url = url.strip().replace(' ', '%20')
    try:
        components = urllib.parse.urlsplit(url)
        hostname = components.hostname
    except ValueError as e:
        raise InvalidURLError(f"'{url}' is not a valid URL.") from e

    if components.scheme.lower() not in ALLOWED_SCHEMES or not hostname:
        raise InvalidURLError(f"'{url}' is not a valid URL.")
    return url


class EntryStore:
    """Business rules of the URL shortener

    Attributes:
        dao (EntryBaseDAO):
            Data store of entries and visitor logs.
        signer (Signer):
            Computes deletion tags.
        id_length (int):
            Length of generated shortcodes.
        dispatcher (VisitDispatcher | None):
            Background executor for visit registration. If None, visits are
            registered inline (failures are still only logged).
    """

    def __init__(
        self,
        dao: EntryBaseDAO,
        signer: Signer,
        id_length: int = Defaults.ID_LENGTH,
        dispatcher: VisitDispatcher | None = None,
    ):
        self.dao = dao
        self.signer = signer
        self.id_length = id_length
        self.dispatcher = dispatcher

    @beartype
    def create_entry(self, entry: EntryModel, shortcode: str = '', password: str = '') -> tuple[str, bytes]:
        """Store a new entry and return its shortcode and deletion tag

        Without a requested shortcode, up to Defaults.CREATE_ATTEMPTS random shortcodes
        are tried; collisions are retried, any other error is raised at once.
        A requested shortcode gets exactly one attempt.

        Args:
            entry (EntryModel):
                Entry to create; target is required, expires_at and remote_addr optional.
                A naive expires_at is taken as UTC.
            shortcode (str):
                Requested shortcode, or '' to generate one.
            password (str):
                Optional password protecting the redirect. Only its bcrypt hash is stored.

        Returns:
            tuple[str, bytes]:
                The shortcode and the deletion tag. The tag is not stored anywhere.

        Raises:
            InvalidURLError:
                If entry.target is not an absolute URL.
            InvalidShortcodeError:
                If the requested shortcode contains characters other than letters,
                digits, '-' and '_'.
            EntryAlreadyExistsError:
                If the requested shortcode is taken.
            IDGenerationExhaustedError:
                If every generated shortcode collided.
            DataStoreError:
                If the data store fails.
        """
        if shortcode and not SHORTCODE_PATTERN.match(shortcode):
            raise InvalidShortcodeError(f"'{shortcode}' is not a valid shortcode.")

        password_hash = entry.password_hash
        if password:
            password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=Defaults.BCRYPT_ROUNDS))

        entry = replace(
            entry,
            target=normalize_url(entry.target),
            password_hash=password_hash,
            expires_at=as_utc(entry.expires_at),
            created_at=datetime.now(UTC),
            visit_count=0,
            last_visit_at=None,
        )

        attempts = 1 if shortcode else Defaults.CREATE_ATTEMPTS
        for attempt in range(1, attempts + 1):
            candidate = shortcode or generate_shortcode(self.id_length)
            try:
                self.dao.insert(replace(entry, shortcode=candidate))
            except EntryAlreadyExistsError:
                if shortcode:
                    raise
                logger.debug('Shortcode collision, retrying.', extra={'shortcode': candidate, 'attempt': attempt})
                continue

            logger.info('Created entry.', extra={'shortcode': candidate, 'attempt': attempt})
            return candidate, self.signer.sign(candidate)

        raise IDGenerationExhaustedError(f'Could not generate a unique shortcode, all {attempts} attempts failed.')

    def get_entry(self, shortcode: str) -> EntryModel:
        """Fetch an entry without checking its expiration

        Raises:
            EntryNotFoundError: If shortcode is empty or unknown.
            DataStoreError: If the data store fails.
        """
        if not shortcode:
            raise EntryNotFoundError('No entry found with an empty shortcode.')
        return self.dao.get(shortcode)

    def get_entry_and_increase(self, shortcode: str) -> EntryModel:
        """Fetch an entry for a redirect

        Expired entries are refused but stay stored; they are cleaned up by the data
        store's own expiration. The returned entry counts the current visit.

        Raises:
            EntryNotFoundError: If shortcode is empty or unknown.
            EntryExpiredError: If the entry's expiration date has passed.
            DataStoreError: If the data store fails.
        """
        entry = self.get_entry(shortcode)
        if entry.is_expired():
            logger.info('Entry is expired.', extra={'shortcode': shortcode, 'expiresAt': entry.expires_at})
            raise EntryExpiredError(f"Entry with shortcode '{shortcode}' is expired.")

        self.dao.hit(shortcode)
        return replace(entry, visit_count=entry.visit_count + 1)

    @beartype
    def delete_entry(self, shortcode: str, deletion_tag: bytes) -> None:
        """Delete an entry after checking its deletion tag

        Raises:
            AuthorizationFailedError: If the tag does not belong to the shortcode.
            DataStoreError: If the data store fails; nothing is deleted in that case.
        """
        if not self.signer.verify(shortcode, deletion_tag):
            logger.info('Deletion tag verification failed.', extra={'shortcode': shortcode})
            raise AuthorizationFailedError(f"Deletion of entry '{shortcode}' is not authorized.")

        self.dao.delete(shortcode)
        logger.info('Deleted entry.', extra={'shortcode': shortcode})

    def deletion_tag(self, shortcode: str) -> bytes:
        return self.signer.sign(shortcode)

    def verify_password(self, entry: EntryModel, password: str) -> bool:
        """Check `password` against the entry's bcrypt hash; unprotected entries always pass"""
        if not entry.is_password_protected():
            return True
        try:
            return bcrypt.checkpw(password.encode('utf-8'), entry.password_hash)
        except ValueError:
            logger.warning('Stored password hash is malformed.', extra={'shortcode': entry.shortcode})
            return False

    def register_visit(self, shortcode: str, visitor: VisitorModel, expires_at: datetime | None = None) -> None:
        """Record a redirect in the entry's visitor log, fire-and-forget

        Never raises: a failed analytics write must not fail the redirect. With a
        dispatcher the append runs in the background (at most once, best effort).

        Args:
            shortcode (str):
                Shortcode of the visited entry.
            visitor (VisitorModel):
                Visit data; timestamp defaults to now.
            expires_at (datetime | None):
                Expiration of the entry, applied to the visitor log as well.
        """
        visit_id = str(uuid.uuid4())
        visitor = replace(visitor, timestamp=as_utc(visitor.timestamp) or datetime.now(UTC))
        ttl = expiration_ttl(expires_at)

        logger.info('New redirect was registered.', extra={'visitId': visit_id, 'shortcode': shortcode, 'ip': visitor.ip})

        if self.dispatcher is None:
            self._append_visitor(shortcode, visit_id, visitor, ttl)
        else:
            self.dispatcher.submit(self._append_visitor, shortcode, visit_id, visitor, ttl)

    def _append_visitor(self, shortcode: str, visit_id: str, visitor: VisitorModel, ttl: int | None) -> None:
        try:
            self.dao.add_visitor(shortcode, visit_id, visitor, ttl=ttl)
        except DAOError as e:
            logger.warning('Could not register visit.', extra={'visitId': visit_id, 'shortcode': shortcode, 'reason': str(e)})

    def get_visitors(self, shortcode: str) -> list[VisitorModel]:
        """Visitor log of an entry, newest first

        Raises:
            DataStoreError: If the data store fails.
        """
        return self.dao.visitors(shortcode)

    def get_entries(self) -> dict[str, EntryModel]:
        """All stored entries keyed by shortcode

        Raises:
            DataStoreError: If the data store fails.
        """
        return self.dao.all()

    def close(self) -> None:
        """Wait for pending visit registrations, then close the data store"""
        if self.dispatcher is not None:
            self.dispatcher.shutdown(wait=True)
        self.dao.close()


def create_entry_store(settings: Settings) -> EntryStore:
    return EntryStore(
        dao=create_entry_dao(settings),
        signer=Signer(settings.signing_key),
        id_length=settings.id_length,
        dispatcher=VisitDispatcher(max_workers=settings.visit_workers, max_pending=settings.visit_queue_size),
    )
