import uuid

import pytest

from meditrack.config import Settings
from meditrack.database import create_context

#a dialect SQLAlchemy cannot load, so the engine always fails to start
BROKEN_DATABASE_URL = "nosuchdialect://localhost/meditrack"


def _settings(tmp_path, database_url, **overrides):
    values = dict(
        database_url=database_url,
        storage_path=str(tmp_path / "storage.json"),
        broadcast_channel=f"meditrack-test-{uuid.uuid4().hex}",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def engine_settings(tmp_path):
    return _settings(tmp_path, f"sqlite:///{tmp_path / 'meditrack.db'}")


@pytest.fixture
def fallback_settings(tmp_path):
    return _settings(tmp_path, BROKEN_DATABASE_URL)


@pytest.fixture
def make_context():
    """Build contexts and close them all at teardown."""
    contexts = []

    def _make(settings):
        ctx = create_context(settings)
        contexts.append(ctx)
        return ctx

    yield _make
    for ctx in contexts:
        ctx.close()


@pytest.fixture(params=["engine", "fallback"])
def backend_settings(request, engine_settings, fallback_settings):
    return engine_settings if request.param == "engine" else fallback_settings


@pytest.fixture
def ctx(make_context, backend_settings):
    return make_context(backend_settings)


@pytest.fixture
def patient_data():
    def _make(**overrides):
        data = {
            "first_name": "Jane",
            "last_name": "Doe",
            "date_of_birth": "1985-04-12",
            "gender": "female",
            "email": "jane.doe@clinic.org",
            "phone": "+1 (555) 123-4567",
            "address": "12 Elm Street",
            "medical_history": "Seasonal allergy",
        }
        data.update(overrides)
        return data

    return _make
