"""
Alembic Environment Configuration
==================================

Runs migrations against the scene sync database. The sqlalchemy.url is
overridden at runtime by scenesync.core.database, so the value in
alembic.ini is only a fallback for CLI usage.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel

from scenesync.models.kv_entry import KVEntry  # noqa: F401

config = context.config

# Invoked from the CLI: take the URL from application settings and log via
# the ini. At app startup the caller has already set both up.
if not config.get_main_option("scenesync.embedded"):
    from scenesync.config import settings

    config.set_main_option("sqlalchemy.url", settings.database_url)
    if config.config_file_name is not None:
        fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL to stdout)."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (connect to DB)."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
