"""Alembic environment for the MicroDrama subscription and episode tables.

The URL always comes from `Settings`, never from alembic.ini:

    alembic upgrade head                 # POSTGRES_* database
    USE_TEST_DB=1 alembic upgrade head   # the `<db>_test` database
    alembic upgrade head --sql           # print the DDL instead of running it
"""

import asyncio
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from microdrama.core.config import settings
from microdrama.db.base import Base  # importing registers both models

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)


def _database_url() -> str:
    if os.getenv("USE_TEST_DB") == "1":
        return settings.TEST_DATABASE_URL
    return settings.ASYNC_DATABASE_URL


def _configure(**kwargs) -> None:
    # Enum and column type changes must show up in autogenerate diffs.
    context.configure(target_metadata=Base.metadata, compare_type=True, **kwargs)


def run_offline(url: str) -> None:
    _configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_online(url: str) -> None:
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


url = _database_url()
config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))  # ini interpolation

if context.is_offline_mode():
    run_offline(url)
else:
    asyncio.run(run_online(url))
