"""Alembic environment.

Takes the database URL from application settings and swaps the asyncpg
driver for psycopg, since migrations run synchronously.
"""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context
from tariffsync.core.config import get_settings
from tariffsync.core.database import Base

# Register every model on Base.metadata for autogenerate
from tariffsync.features.export.models import Spreadsheet  # noqa: F401
from tariffsync.features.tariffs.models import TariffRequest, WarehouseTariff  # noqa: F401

config = context.config

db_url = get_settings().database_url.replace("+asyncpg", "+psycopg")
config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL without connecting to the database."""
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
    """Connect and apply migrations."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
