"""History subsystem — rolling run log over a key-value backend."""

from .backends import KeyValueBackend, MemoryKeyValueBackend, SqliteKeyValueBackend
from .store import HISTORY_KEY, RETENTION, HistoryLog, HistoryStore, prune
