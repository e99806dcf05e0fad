from __future__ import annotations

import logging
from pathlib import Path

from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Engine

from respos.core.config import DATABASE_URL, IS_PROD, IS_TEST

logger = logging.getLogger(__name__)
MIGRATIONS_PREFIX = "[MIGRATIONS]"


def validate_database_environment() -> None:
    if IS_PROD and DATABASE_URL.startswith("sqlite"):
        logger.critical("%s refusing SQLite outside development", MIGRATIONS_PREFIX)
        raise RuntimeError("SQLite cannot back a production deployment")


def _script_heads(alembic_config_path: Path) -> set[str]:
    if not alembic_config_path.exists():
        logger.critical("%s missing alembic.ini at %s", MIGRATIONS_PREFIX, alembic_config_path)
        raise RuntimeError(f"alembic config not found: {alembic_config_path}")
    scripts = ScriptDirectory.from_config(Config(str(alembic_config_path)))
    return set(scripts.get_heads())


def _database_heads(engine: Engine) -> set[str]:
    with engine.connect() as connection:
        return set(MigrationContext.configure(connection).get_current_heads())


def ensure_migrations_applied(*, engine: Engine, alembic_config_path: Path) -> None:
    """Stop startup unless the user schema is at the latest revision.

    Run ``alembic upgrade head`` to fix a failing check.
    """
    if IS_TEST:
        logger.info("%s revision check skipped for tests", MIGRATIONS_PREFIX)
        return

    expected = _script_heads(alembic_config_path)
    applied = _database_heads(engine)
    if not applied:
        logger.critical("%s database has never been migrated", MIGRATIONS_PREFIX)
        raise RuntimeError("Database has no migration state")
    if applied != expected:
        logger.critical(
            "%s schema out of date applied=%s expected=%s",
            MIGRATIONS_PREFIX,
            sorted(applied),
            sorted(expected),
        )
        raise RuntimeError("Pending migrations detected")

    logger.info("%s schema at revision %s", MIGRATIONS_PREFIX, ", ".join(sorted(applied)))
