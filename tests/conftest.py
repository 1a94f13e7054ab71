"""Configuration de test pour pytest.

Chaque test obtient un conteneur isolé (SQLite en mémoire, cache mémoire) et une application
FastAPI construite sur ce conteneur. Les jeux de données et jetons sont fournis par fixtures.
"""

import os
import sys
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so that
# imports like `from bilemo...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from bilemo.app.main import create_app  # noqa: E402
from bilemo.core.container import Container  # noqa: E402
from bilemo.core.http_constants import ROLE_ADMIN, ROLE_USER  # noqa: E402
from bilemo.core.settings import Settings  # noqa: E402
from bilemo.domain.auth import create_access_token, hash_password  # noqa: E402
from bilemo.infra.repo.db import session_scope  # noqa: E402
from bilemo.infra.repo.models import Brand, Customer, Smartphone, User  # noqa: E402

PASSWORD = "Secret123"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_ENV="test",
        APP_DEBUG=False,
        DATABASE_URL="sqlite+pysqlite:///:memory:",
        DB_AUTO_CREATE=True,
        REDIS_URL=None,
        REQUIRE_REDIS=False,
        JWT_SECRET="test-secret",
        DEFAULT_API_VERSION="1.0",
        DEFAULT_PAGE_LIMIT=3,
        PAGINATION_STRICT=False,
    )


@pytest.fixture
def container(settings):
    c = Container(settings)
    yield c
    c.engine.dispose()


@pytest.fixture
def app(container):
    return create_app(container)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def seeded(container):
    """Deux utilisateurs standards, un administrateur, des clients et un petit catalogue."""
    with session_scope(container.session_factory) as s:
        demo = User(email="democlient@demo.com", password_hash=hash_password(PASSWORD), roles=[ROLE_USER])
        other = User(email="other@demo.com", password_hash=hash_password(PASSWORD), roles=[ROLE_USER])
        admin = User(email="admin@bilemo.com", password_hash=hash_password(PASSWORD), roles=[ROLE_ADMIN])
        s.add_all([demo, other, admin])
        for i in range(10):
            s.add(Customer(email=f"user{i}@demo.com", first_name=f"John-{i}", last_name=f"Doe-{i}", owner=demo))
        s.add(Customer(email="someone@demo.com", first_name="Jane", last_name="Roe", owner=other))
        apple = Brand(name="Apple")
        sony = Brand(name="Sony")
        s.add_all([apple, sony])
        for j in range(4):
            s.add(
                Smartphone(
                    name=f"DemoSmartphone : {j}",
                    description=f"Demo description : {j}",
                    screen_size=Decimal("6.1"),
                    price=Decimal("799.90"),
                    brand=apple if j % 2 == 0 else sony,
                )
            )
        s.flush()
        ids = {
            "demo": demo.id,
            "other": other.id,
            "admin": admin.id,
            "apple": apple.id,
            "sony": sony.id,
            "other_customer": other.customers[0].id,
        }
    return ids


def _token(settings, user_id: int, email: str, roles: list[str]) -> str:
    return create_access_token(
        settings.JWT_SECRET,
        settings.JWT_ALG,
        settings.JWT_EXPIRES_MIN,
        {"sub": str(user_id), "email": email, "roles": roles},
    )


@pytest.fixture
def user_headers(settings, seeded):
    return {"Authorization": f"Bearer {_token(settings, seeded['demo'], 'democlient@demo.com', [ROLE_USER])}"}


@pytest.fixture
def other_headers(settings, seeded):
    return {"Authorization": f"Bearer {_token(settings, seeded['other'], 'other@demo.com', [ROLE_USER])}"}


@pytest.fixture
def admin_headers(settings, seeded):
    return {"Authorization": f"Bearer {_token(settings, seeded['admin'], 'admin@bilemo.com', [ROLE_ADMIN])}"}
