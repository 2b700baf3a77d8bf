"""Alembic env.py: async SQLAlchemy migrations.

The target database defaults to settings.DATABASE_URL; pass
``alembic -x url=sqlite+aiosqlite:///scratch.db upgrade head`` to point
elsewhere.
"""
import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from aga.core.config import settings
from aga.core.database import Base

import aga.models.campaign  # noqa
import aga.models.metrics   # noqa
import aga.models.run       # noqa
import aga.models.user      # noqa

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("url") or settings.DATABASE_URL


def _configure(url: str, **kwargs) -> None:
    # SQLite cannot ALTER most columns in place
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline():
    url = _database_url()
    _configure(url, url=url, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations(url: str):
    engine = create_async_engine(url, poolclass=pool.NullPool)
    async with engine.connect() as conn:
        await conn.run_sync(lambda sync_conn: _run_with_connection(sync_conn, url))
    await engine.dispose()


def _run_with_connection(connection, url: str):
    _configure(url, connection=connection)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations(_database_url()))
