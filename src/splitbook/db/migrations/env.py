from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

from splitbook.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# The schema is written by hand in versions/, there are no ORM models to compare against.
target_metadata = None


def _sync_database_url() -> str:
    settings = get_settings()
    if settings.uses_memory_store:
        raise RuntimeError("DATABASE_URL points to the in-memory store, there is nothing to migrate")
    url = make_url(settings.database_url)
    if "+asyncpg" in url.drivername:
        url = url.set(drivername=url.drivername.replace("+asyncpg", ""))
    return url.render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    context.configure(url=_sync_database_url(), literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(_sync_database_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
