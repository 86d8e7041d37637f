"""
Service Portfolio
Per-application runtime state.

One ``PortfolioState`` lives in ``app.extensions["portfolio"]`` and owns:
    - the persistence backend ("sheet" gateway or "sql" repository)
    - the in-memory ServiceStore (filled lazily by the first read)
    - the webhook gateway
    - open ranking boards
    - issued auth tokens

Usage:
    from portfolio.state import get_state
    records = get_state().records()
"""

import logging

from flask import current_app

from portfolio.auth import TokenRegistry
from portfolio.integrations.sheet_gateway import SheetGateway
from portfolio.integrations.webhook_gateway import WebhookGateway
from portfolio.models.catalog import DEFAULT_BUSINESS_MODEL
from portfolio.services.ranking_board import BoardRegistry
from portfolio.services.repository import SqlServiceRepository
from portfolio.services.service_store import ServiceStore

logger = logging.getLogger(__name__)

EXTENSION_KEY = "portfolio"
BACKENDS = ("sheet", "sql")


class PortfolioState:
    def __init__(self, config) -> None:
        self.config = config
        timeout = config.get("GATEWAY_TIMEOUT", 30)
        self.sheet = SheetGateway(config.get("SHEET_API_URL"), timeout=timeout)
        self.webhook = WebhookGateway(config.get("WEBHOOK_URL"), timeout=timeout)

        backend_name = config.get("PERSISTENCE_BACKEND", "sheet")
        if backend_name not in BACKENDS:
            raise RuntimeError(f"PERSISTENCE_BACKEND must be one of {', '.join(BACKENDS)}, got {backend_name!r}")
        self.backend_name = backend_name
        self.backend = self.sheet if backend_name == "sheet" else SqlServiceRepository()

        self.tokens = TokenRegistry()
        self.reset()

    def reset(self) -> None:
        """Drop cached records and open boards (next read refetches)."""
        self.store = ServiceStore()
        self.boards = BoardRegistry(self.store)

    def records(self) -> list:
        """Snapshot of the store, doing the initial full fetch on first use."""
        return self.ensure_loaded().snapshot()

    def ensure_loaded(self) -> ServiceStore:
        if not self.store.loaded:
            self.store.refresh(self.backend)
        return self.store

    @property
    def default_business_model(self) -> str:
        return self.config.get("DEFAULT_BUSINESS_MODEL") or DEFAULT_BUSINESS_MODEL


def init_state(app) -> PortfolioState:
    state = PortfolioState(app.config)
    app.extensions[EXTENSION_KEY] = state
    logger.info("Portfolio state initialised (backend=%s)", state.backend_name)
    return state


def get_state() -> PortfolioState:
    return current_app.extensions[EXTENSION_KEY]
