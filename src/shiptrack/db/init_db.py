"""
shiptrack.db.init_db

Schema bootstrap for dev/test databases.
"""

from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from shiptrack.db import models  # noqa: F401  # register tables on Base.metadata
from shiptrack.db.base import Base
from shiptrack.observability.logging import get_logger

log = get_logger(__name__)


async def init_db(engine: AsyncEngine) -> list[str]:
    """
    Create missing tables; returns the names of the tables that were created.
    """

    async with engine.begin() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        await conn.run_sync(Base.metadata.create_all)

    created = sorted(set(Base.metadata.tables) - existing)
    if created:
        log.info("db_tables_created", tables=created)
    return created


# --- Module Notes -----------------------------------------------------------
# Only `api.app` (env dev/test), the CLI tests and the test fixtures call this;
# prod schemas come from `alembic upgrade head`.
