import threading
from dataclasses import replace
from unittest.mock import MagicMock

import pytest
import redis
from pytest import MonkeyPatch

from linkshortener.constants import ENV
from linkshortener.models import EntryModel, VisitorModel, EPOCH
from linkshortener.dao.base import EntryBaseDAO
from linkshortener.dao.exceptions import EntryAlreadyExistsError, EntryNotFoundError
from linkshortener.store import EntryStore
from linkshortener.utils.signing import Signer


class InMemoryEntryDAO(EntryBaseDAO):
    """Dict-backed EntryBaseDAO honouring the same contract as the Redis DAO"""

    def __init__(self):
        self._lock = threading.Lock()
        self.entries: dict[str, EntryModel] = {}
        self.visits: dict[str, list[VisitorModel]] = {}
        self.visit_ttls: dict[str, int | None] = {}
        self.insert_attempts: list[str] = []
        self.hits: list[str] = []
        self.closed = False

    def insert(self, entry: EntryModel, **kwargs) -> 'InMemoryEntryDAO':
        with self._lock:
            self.insert_attempts.append(entry.shortcode)
            if entry.shortcode in self.entries:
                raise EntryAlreadyExistsError(f"Entry with shortcode '{entry.shortcode}' already exists.")
            self.entries[entry.shortcode] = entry
        return self

    def get(self, shortcode: str, **kwargs) -> EntryModel:
        with self._lock:
            if shortcode not in self.entries:
                raise EntryNotFoundError(f"Entry with shortcode '{shortcode}' not found.")
            visits = self.visits.get(shortcode, [])
            return replace(
                self.entries[shortcode],
                visit_count=len(visits),
                last_visit_at=visits[0].timestamp if visits else EPOCH,
            )

    def all(self, **kwargs) -> dict[str, EntryModel]:
        return {shortcode: self.get(shortcode) for shortcode in sorted(self.entries)}

    def delete(self, shortcode: str, **kwargs) -> bool:
        with self._lock:
            self.visits.pop(shortcode, None)
            return self.entries.pop(shortcode, None) is not None

    def add_visitor(self, shortcode: str, visit_id: str, visitor: VisitorModel, ttl: int | None = None, **kwargs) -> None:
        with self._lock:
            self.visits.setdefault(shortcode, []).insert(0, visitor)
            self.visit_ttls[shortcode] = ttl

    def visitors(self, shortcode: str, **kwargs) -> list[VisitorModel]:
        with self._lock:
            return list(self.visits.get(shortcode, []))

    def hit(self, shortcode: str, **kwargs) -> None:
        self.hits.append(shortcode)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def app_prefix() -> str:
    return 'testapp:test'


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: MonkeyPatch) -> None:
    """Keep the developer's shell environment out of the tests."""
    for name in (*ENV.App, *ENV.AppConfig, *ENV.Signing, *ENV.LocalStack):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def redis_client() -> redis.Redis:
    """Mock a Redis pipeline-compatible client."""
    client = MagicMock(spec=redis.client.Pipeline)
    client.connection_pool = MagicMock(
        spec=redis.ConnectionPool,
        connection_kwargs={'host': 'redis.test', 'port': 6379, 'db': 0},
    )
    client.ping.return_value = True
    client.pipeline.return_value = client
    client.__enter__.return_value = client
    client.__exit__.return_value = None
    return client


@pytest.fixture
def dao() -> InMemoryEntryDAO:
    return InMemoryEntryDAO()


@pytest.fixture
def signer() -> Signer:
    return Signer(b'test-signing-key')


@pytest.fixture
def store(dao, signer) -> EntryStore:
    """EntryStore registering visits inline, so tests can read them back right away."""
    return EntryStore(dao=dao, signer=signer, id_length=4)
