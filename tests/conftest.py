"""
Test configuration for the Budget API.

The environment is pinned before any project import: models/__init__.py builds
the storage singleton at import time, and DATABASE_URL=sqlite:// gives every
test run a private in-memory database (one shared connection, see DBStorage).
"""
import os
import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-0123"

import pytest

from api import create_app
from models import storage
from models.budget import Budget
from models.user import User
from utils.security import hash_password
from worker.distributor import TaskDistributor, TaskEnqueueError

DEFAULT_PASSWORD = "correct-horse-battery"


class RecordingDistributor(TaskDistributor):
    """Keeps enqueued tasks in memory; `fail = True` simulates Redis being down."""

    def __init__(self):
        self.calls = []
        self.fail = False

    def distribute_send_email(self, payload, task_name):
        if self.fail:
            raise TaskEnqueueError("queue unavailable")
        self.calls.append((task_name, payload))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def fresh_db():
    storage.drop_all()
    storage.reload()
    yield
    storage.close()


@pytest.fixture
def distributor():
    return RecordingDistributor()


@pytest.fixture
def app(distributor):
    app = create_app("test", task_distributor=distributor)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_user(username="alice01", email=None, password=DEFAULT_PASSWORD, verified=True) -> User:
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        password_hash=hash_password(password),
        email_verified=verified,
    )
    storage.new(user)
    storage.save()
    return user


def make_budget(owner_username, name="Household", currency_code="USD") -> Budget:
    budget = Budget(owner_username=owner_username, name=name, currency_code=currency_code)
    storage.new(budget)
    storage.save()
    return budget


def login(client, username="alice01", password=DEFAULT_PASSWORD):
    return client.post("/api/v1/login", json={"username": username, "password": password})


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def auth_headers(client, user):
    resp = login(client)
    assert resp.status_code == 200, resp.get_json()
    return bearer(resp.get_json()["access_token"])
