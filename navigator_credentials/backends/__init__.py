"""Reference backends for the credential core."""
from .memory import MemoryPersistence, MemorySessionRegistry

__all__ = [
    "MemoryPersistence",
    "MemorySessionRegistry",
]
