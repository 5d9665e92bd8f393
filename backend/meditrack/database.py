"""Engine setup and the persistence context shared by every gateway call."""
import enum
import logging
from typing import Optional

from fastapi import Request
#Base class for SQLAlchemy ORM models.
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.engine import Engine

from .config import Settings, settings as default_settings
from .notifier import ChangeBus, open_broadcast_transport
from .storage.kv import KeyValueStorage
from .storage.memory import InMemoryStore

logger = logging.getLogger(__name__)

# Create Base class
Base = declarative_base()


class PersistenceMode(enum.Enum):
    UNINITIALIZED = "uninitialized"
    ENGINE = "engine"
    FALLBACK = "fallback"


class DatabaseContext:
    """Holds which backend is active plus everything both backends need.

    ``mode`` moves from UNINITIALIZED to ENGINE or FALLBACK exactly once and
    never changes afterwards.
    """

    def __init__(self, settings: Settings, storage: KeyValueStorage, store: InMemoryStore, bus: ChangeBus):
        self.settings = settings
        self.storage = storage
        self.store = store
        self.bus = bus
        self.mode = PersistenceMode.UNINITIALIZED
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None

    @property
    def is_fallback(self) -> bool:
        return self.mode is PersistenceMode.FALLBACK

    def use_engine(self, engine: Engine) -> None:
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        self.mode = PersistenceMode.ENGINE

    def use_fallback(self) -> None:
        self.engine = None
        self.SessionLocal = None
        self.mode = PersistenceMode.FALLBACK

    def get_session(self):
        return self.SessionLocal()

    def close(self) -> None:
        self.bus.close()
        if self.engine is not None:
            self.engine.dispose()


def create_context(settings: Optional[Settings] = None) -> DatabaseContext:
    """Build a context: storage, in-memory table and change bus.

    The engine itself is only attempted by ``gateway.init_db``.
    """
    settings = settings or default_settings
    storage = KeyValueStorage(settings.storage_path, probe_key=settings.probe_key)
    store = InMemoryStore(storage, settings.snapshot_key)
    bus = ChangeBus(open_broadcast_transport(settings.broadcast_channel))
    return DatabaseContext(settings, storage, store, bus)


# Dependency to get the persistence context
def get_db(request: Request) -> DatabaseContext:
    #Created once by the app lifespan and shared by all routes.
    return request.app.state.db
