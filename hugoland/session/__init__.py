"""
Session Module - Owns the live game state and its persistence.

A session is one running instance of the game:
- Loads the saved snapshot (or starts fresh) and reconciles offline time
- Applies every command through the reducer
- Persists snapshots after a short quiet period
- Refreshes the relic market on a fixed poll

Persistence failures never block play; the in-memory snapshot stays
authoritative.
"""

from .persistence import PersistenceBackend, MemoryBackend, FileBackend
from .codec import StateIntegrityError, encode, decode
from .store import StateStore, DEFAULT_STORAGE_KEY

__all__ = [
    "PersistenceBackend",
    "MemoryBackend",
    "FileBackend",
    "StateIntegrityError",
    "encode",
    "decode",
    "StateStore",
    "DEFAULT_STORAGE_KEY",
]
