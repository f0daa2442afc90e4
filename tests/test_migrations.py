from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest
from alembic import command

from devflow_api.config.settings import get_settings
from devflow_api.db.migrations import build_config, run_migrations


def _fetch_version_sync(db_file: Path) -> str | None:
    with sqlite3.connect(db_file) as conn:
        cursor = conn.execute("SELECT version_num FROM alembic_version")
        row = cursor.fetchone()
        return row[0] if row else None


def _table_names(db_file: Path) -> list[str]:
    with sqlite3.connect(db_file) as conn:
        cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
        return [row[0] for row in cursor.fetchall()]


@pytest.fixture()
def migration_db(tmp_path, monkeypatch):
    db_path = tmp_path / "migrations.sqlite"
    monkeypatch.setenv("DEVFLOW_DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.delenv("DEVFLOW_SKIP_MIGRATIONS", raising=False)
    get_settings.cache_clear()
    yield db_path
    get_settings.cache_clear()


def test_run_migrations_creates_schema(migration_db: Path) -> None:
    run_migrations()

    tables = _table_names(migration_db)
    assert {"alembic_version", "users", "questions", "tags", "question_tags"} <= set(tables)
    assert _fetch_version_sync(migration_db) == "0001_initial_schema"


def test_migrations_downgrade_to_base(migration_db: Path) -> None:
    run_migrations()
    command.downgrade(build_config(), "base")

    assert _table_names(migration_db) == ["alembic_version"]
    assert _fetch_version_sync(migration_db) is None


def test_run_migrations_honours_skip_flag(migration_db: Path, monkeypatch) -> None:
    monkeypatch.setenv("DEVFLOW_SKIP_MIGRATIONS", "1")
    run_migrations()

    assert not migration_db.exists()
