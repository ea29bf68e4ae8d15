"""Shared fixtures: settings, in-memory storage and a store with a frozen clock."""

import os

import pytest

from factories import NOW, TODAY
from spardavel.audit import AuditLogger
from spardavel.config import Settings, get_settings
from spardavel.orchestrator import LedgerStore
from spardavel.services.storage import InMemoryAuditStorage, InMemoryStateStorage


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep SPARDAVEL_* variables from the shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("SPARDAVEL_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def state_storage():
    return InMemoryStateStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def make_store(state_storage, audit_storage, settings):
    """Build a store over the shared storages with the clock frozen at TODAY."""
    def _make(today=TODAY, now=NOW, storage=None):
        return LedgerStore(
            storage=storage or state_storage,
            audit_logger=AuditLogger(audit_storage),
            settings=settings,
            clock=lambda: today,
            now=lambda: now,
        )
    return _make


@pytest.fixture
def store(make_store):
    """A loaded, empty store."""
    ledger = make_store()
    ledger.load()
    return ledger
