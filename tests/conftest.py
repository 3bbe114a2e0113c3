import pytest

from juriscloud.database import init_db, reset_engine
from juriscloud.gateway.auth import AuthGateway
from juriscloud.gateway.query import Gateway
from juriscloud.gateway.storage import LocalStorageBucket
from juriscloud.notifications import Notifier
from juriscloud.session import SessionContext

EMAIL = "claire.martin@cabinet-martin.fr"
PASSWORD = "motdepasse"


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Fresh SQLite database per test."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'juriscloud-test.db'}")
    reset_engine()
    init_db()
    yield
    reset_engine()


@pytest.fixture
def gateway():
    return Gateway()


@pytest.fixture
def auth(gateway):
    return AuthGateway(gateway, auto_confirm=True)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def navigation():
    return []


@pytest.fixture
async def session(auth, notifier, navigation):
    context = SessionContext(auth, notifier, navigate=navigation.append)
    await auth.sign_up(EMAIL, PASSWORD, {"first_name": "Claire", "last_name": "Martin"})
    error = await context.sign_in(EMAIL, PASSWORD)
    assert error is None
    yield context
    context.close()


@pytest.fixture
def bucket(tmp_path):
    return LocalStorageBucket("case-documents", root=str(tmp_path / "storage"))
