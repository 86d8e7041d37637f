"""
Shared pytest fixtures for the Service Portfolio test suite.

Provides:
    - app: Flask application (session-scoped, sql backend on in-memory SQLite)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup + runtime state reset (autouse)
    - client: Flask test client (function-scoped)
    - state: the app's PortfolioState
    - make_service: factory that inserts a service through the sql backend
"""

import pytest

from portfolio import create_app
from portfolio.models import db as _db
from portfolio.models.service import Service
from portfolio.state import get_state


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
    """Per-test: open app context, reset the in-memory store, recreate tables."""
    with app.app_context():
        get_state().reset()
        yield
        get_state().reset()
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def state(app):
    return get_state()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def make_service(state):
    """Insert a service through the sql backend and return it.

    Scores and revenue are applied with a follow-up update, like the
    ranking save does, since creation always starts them at zero.
    """
    def _make(name="Instalação Smart Home", scores=(0, 0, 0, 0, 0), revenue=0, **fields):
        fields.setdefault("cluster", "Casa Inteligente")
        fields.setdefault("business_model", "Assinatura")
        fields.setdefault("need", "Configurar dispositivos")
        fields.setdefault("target_audience", "Famílias")
        created = state.backend.add_service(Service(id=None, service=name, **fields))
        if any(scores) or revenue:
            created = state.backend.update_service(
                created.copy(scores=list(scores), revenue_estimate=revenue)
            )
        return created
    return _make

