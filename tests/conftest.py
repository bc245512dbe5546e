"""
Shared pytest fixtures for the Idea Box test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - admin / employee: pre-created users
    - admin_headers / employee_headers: X-User-Id headers for the test client
    - seeded_pools: default classification pools
"""

import pytest

from ideabox import create_app
from ideabox.models import db as _db
from ideabox.models.user import User
from ideabox.services import cache_service


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        # Ids are reused after the recreate; cached pools must not survive.
        cache_service.clear_all()
        yield
        cache_service.clear_all()
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


def make_user(email, role="USER", first_name=None, last_name=None, sector=None):
    """Create and commit a User row."""
    user = User(email=email, role=role, first_name=first_name, last_name=last_name, sector=sector)
    _db.session.add(user)
    _db.session.commit()
    return user


@pytest.fixture()
def admin():
    return make_user("ana.admin@example.com", role="ADMIN", first_name="Ana", last_name="Souza")


@pytest.fixture()
def employee():
    return make_user("joao@example.com", first_name="João", last_name="Silva", sector="Produção")


@pytest.fixture()
def admin_headers(admin):
    return {"X-User-Id": str(admin.id)}


@pytest.fixture()
def employee_headers(employee):
    return {"X-User-Id": str(employee.id)}


@pytest.fixture()
def seeded_pools():
    """Default Impact / Capacity / Effort pools."""
    from ideabox.services import classification_service

    classification_service.seed_defaults()
    return {
        axis: {row["label"]: row for row in classification_service.list_all(axis)}
        for axis in ("IMPACT", "CAPACITY", "EFFORT")
    }
