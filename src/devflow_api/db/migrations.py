"""Apply the Alembic revisions under ``alembic/`` to the configured database."""

from __future__ import annotations

import os
from pathlib import Path

from alembic import command
from alembic.config import Config

from devflow_api.config.settings import get_settings
from devflow_api.core.logging import get_logger

PROJECT_ROOT = Path(__file__).resolve().parents[3]
SKIP_ENV_VAR = "DEVFLOW_SKIP_MIGRATIONS"

logger = get_logger(__name__)


def _locate(name: str, *, override_env: str) -> Path:
    """Find ``name`` via an env override, then the project root, then the cwd."""

    override = os.environ.get(override_env)
    candidates = [Path(override)] if override else []
    candidates += [PROJECT_ROOT / name, Path.cwd() / name]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    checked = ", ".join(str(path) for path in candidates)
    raise FileNotFoundError(f"{name} not found (checked {checked}); set {override_env}.")


def build_config(database_url: str | None = None) -> Config:
    """Alembic config bound to ``database_url`` (defaults to the configured one)."""

    ini_path = _locate("alembic.ini", override_env="DEVFLOW_ALEMBIC_CONFIG")
    scripts = _locate("alembic", override_env="DEVFLOW_ALEMBIC_PATH")

    config = Config(str(ini_path))
    config.set_main_option("script_location", str(scripts))
    # ConfigParser treats % as interpolation syntax.
    url = database_url or get_settings().database_url
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def migrations_disabled() -> bool:
    return os.environ.get(SKIP_ENV_VAR, "").strip().lower() in {"1", "true", "yes"}


def run_migrations(target_revision: str = "head") -> None:
    """Upgrade to ``target_revision``. Database errors propagate to the caller."""

    if migrations_disabled():
        logger.info("migrations_skipped", reason=SKIP_ENV_VAR)
        return

    config = build_config()
    logger.info("migrations_started", target=target_revision)
    command.upgrade(config, target_revision)
    logger.info("migrations_finished", target=target_revision)


if __name__ == "__main__":  # pragma: no cover
    run_migrations()
