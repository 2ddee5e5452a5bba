import asyncio
import inspect
import os
import sys
from pathlib import Path

# Configure the environment before any project imports build the storage singleton
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only-do-not-use-in-production")

import pytest  # noqa: E402

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.user import ROLE_ADMIN, ROLE_USER, User  # noqa: E402
from utils.security import hash_password  # noqa: E402


@pytest.fixture
def app():
    app = create_app("test")
    storage.reset()
    with app.app_context():
        yield app
    storage.close()


@pytest.fixture
def client(app):
    # cookies are passed explicitly so each test controls which refresh token is presented
    return app.test_client(use_cookies=False)


@pytest.fixture
def make_user(app):
    def _make_user(email="a@x.com", password="secret123", username=None, name="Test User", role=ROLE_USER):
        user = User(
            email=email,
            username=username or email.split("@")[0],
            name=name,
            password_hash=hash_password(password),
            role=role,
        )
        storage.new(user)
        storage.save()
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user(username="tester")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@x.com", username="admin", role=ROLE_ADMIN)


def refresh_cookie_from(response):
    """Value of the refreshToken cookie set by response, or None."""
    for header in response.headers.getlist("Set-Cookie"):
        name, _, rest = header.partition("=")
        if name.strip() == "refreshToken":
            return rest.split(";", 1)[0]
    return None


def pytest_pyfunc_call(pyfuncitem):
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames
            if name in pyfuncitem.funcargs
        }
        asyncio.run(pyfuncitem.obj(**call_kwargs))
        return True
    return None


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")
