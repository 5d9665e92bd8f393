from .kv import KeyValueStorage
from .memory import InMemoryStore

__all__ = ["KeyValueStorage", "InMemoryStore"]
