"""
Alembic environment for the Featherlog schema (projects, users, logs).

  • The URL is settings.DATABASE_URL; alembic.ini carries only logging
    config, so the database secret lives in one place.
  • Autogenerate diffs against Base.metadata, which is complete once the
    three model modules below are imported.
  • Migrations run through the async driver in DATABASE_URL (asyncpg in
    production). On SQLite, batch mode turns ALTERs into table copies.
  • compare_type=True: JSON → JSONB and String length changes on the
    logs/projects columns show up in autogenerate diffs.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from featherlog.core.config import settings
from featherlog.core.database import Base, build_engine

# Every table the app owns; a model missing here would be dropped by autogenerate
import featherlog.models.project  # noqa: F401
import featherlog.models.user  # noqa: F401
import featherlog.models.log_event  # noqa: F401

# ── Config ──────────────────────────────────────────────────
config = context.config

# alembic.ini has no sqlalchemy.url
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

# Logging sections of alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


# ── Offline mode (generates SQL script, no DB connection) ──
def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=url is not None and url.startswith("sqlite"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


# ── Online (async) mode ────────────────────────────────────
def do_run_migrations(connection) -> None:  # type: ignore[no-untyped-def]
    """Configure context with a live connection and run."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """
    Run migrations on a one-off engine built like the app's, so SQLite
    enforces foreign keys during migrations too.
    """
    connectable = build_engine(
        config.get_main_option("sqlalchemy.url"),
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (async)."""
    asyncio.run(run_async_migrations())


# ── Entrypoint ──────────────────────────────────────────────
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
