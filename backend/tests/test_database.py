"""Tests for engine configuration in the session manager."""

from unittest.mock import MagicMock, patch

from stayhub.config import settings
from stayhub.database import DatabaseSessionManager

ENGINE_PATH = "stayhub.database.create_async_engine"


def _engine_kwargs(url: str) -> dict:
    engine_factory = MagicMock()
    with patch(ENGINE_PATH, new=engine_factory):
        DatabaseSessionManager().init(url)
    return engine_factory.call_args.kwargs


def test_asyncpg_statements_have_a_command_timeout(monkeypatch):
    monkeypatch.setattr(settings, "database_command_timeout", 4.0)
    kwargs = _engine_kwargs("postgresql+asyncpg://u:p@db:5432/stayhub")

    assert kwargs["connect_args"] == {"command_timeout": 4.0}
    assert kwargs["pool_timeout"] == settings.database_pool_timeout


def test_sqlite_lock_waits_are_bounded(monkeypatch):
    monkeypatch.setattr(settings, "database_command_timeout", 4.0)
    kwargs = _engine_kwargs("sqlite+aiosqlite:///stayhub.db")

    assert kwargs["connect_args"] == {"timeout": 4.0}
    assert "pool_size" not in kwargs
