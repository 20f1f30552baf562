from linkshortener.store.visits import VisitDispatcher
from linkshortener.store.entry_store import EntryStore, create_entry_store


__all__ = [
    'VisitDispatcher',
    'EntryStore',
    'create_entry_store',
]
