import os
import tempfile

# Point the storage singleton at a throwaway SQLite file before `models` is imported
_test_tmp_dir = tempfile.mkdtemp(prefix="logger_api_test_")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_test_tmp_dir, "test.db")
os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.enums import Role  # noqa: E402

DEVICE_ID = "6db435f352d7ea4a67807a3feb447bf7"


@pytest.fixture
def app():
    storage.reset()
    app = create_app("testing")
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session_service(app):
    return app.extensions["session"]


@pytest.fixture
def refresh_manager(session_service):
    return session_service.refresh_tokens


@pytest.fixture
def guard(app):
    return app.extensions["guard"]


@pytest.fixture
def make_user(session_service):
    """Register a user directly through the orchestrator."""
    def _make(email, password="password", role=Role.USER, display_name="logger"):
        return session_service.register(email, display_name, password, role=role)

    return _make


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def login(client, email, password="password", device_id=DEVICE_ID):
    return client.post("/api/login", json={"email": email, "password": password, "device_id": device_id})
