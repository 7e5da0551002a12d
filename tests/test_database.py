"""Tests for schema setup (Alembic upgrade at startup)."""

from sqlalchemy import inspect

from scenesync.config import settings
from scenesync.core import database


def test_init_db_applies_migrations(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path}/migrated.db")
    monkeypatch.setattr(database, "_engine", None)

    database.init_db()
    try:
        tables = inspect(database.get_engine()).get_table_names()
        assert "kv_entries" in tables
        assert "alembic_version" in tables
    finally:
        database.close_db()


def test_init_db_is_idempotent(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path}/twice.db")
    monkeypatch.setattr(database, "_engine", None)

    database.init_db()
    database.init_db()
    database.close_db()


def test_falls_back_to_create_all_without_alembic_ini(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path}/plain.db")
    monkeypatch.setattr(database, "_engine", None)
    monkeypatch.setattr(database, "_run_alembic_upgrade", lambda: False)

    database.init_db()
    try:
        assert "kv_entries" in inspect(database.get_engine()).get_table_names()
    finally:
        database.close_db()
