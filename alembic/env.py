"""Migration runner for the contest schema.

``contest_node.db.init_db.migrate`` drives this with a programmatic config
whose ``sqlalchemy.url`` is the app engine's URL; the Alembic CLI falls back
to the ``POSTGRES_*`` environment.
"""
from __future__ import annotations

import logging

from alembic import context
from sqlalchemy import create_engine, pool, text
from sqlmodel import SQLModel

from contest_node.db import tables  # noqa: F401  registers every table on SQLModel.metadata
from contest_node.db.session import database_url

# DDL on contests must not wait forever behind a settlement holding the row
LOCK_TIMEOUT = "30s"

logger = logging.getLogger("contest_node.migrations")


def _migration_url() -> str:
    return context.config.get_main_option("sqlalchemy.url") or database_url()


def _configure(**kwargs) -> None:
    # JSONB payload columns change shape with the entities; compare types too
    context.configure(target_metadata=SQLModel.metadata, compare_type=True, **kwargs)


def run_offline() -> None:
    """Emit the migration SQL without a connection."""
    _configure(url=_migration_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    url = _migration_url()
    logger.info("Migrating %s", url.rsplit("@", 1)[-1])
    connectable = create_engine(url, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        connection.execute(text(f"SET lock_timeout = '{LOCK_TIMEOUT}'"))
        connection.commit()
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
