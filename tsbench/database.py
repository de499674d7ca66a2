from __future__ import annotations

import logging

from sqlalchemy import create_engine, func, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import LoadError

logger = logging.getLogger(__name__)


def make_engine(url: str, pool_size: int = 1) -> Engine:
    """Engine for the target database; every statement is committed on its own."""
    kwargs = {}
    if not url.startswith("sqlite"):
        kwargs = {"pool_size": pool_size, "max_overflow": 0}
    try:
        return create_engine(url, echo=False, future=True, isolation_level="AUTOCOMMIT", **kwargs)
    except (SQLAlchemyError, ImportError) as e:
        raise LoadError(f"Failed to create engine for {url}: {e}") from e


def execute_sql(engine: Engine, sql: str) -> int:
    """Execute literal SQL and return the affected row count (-1 when unknown)."""
    logger.debug("Executing %.200s", sql)
    try:
        with engine.connect() as conn:
            # no_parameters keeps the driver from %-formatting the literal text
            result = conn.exec_driver_sql(sql, execution_options={"no_parameters": True})
            return result.rowcount
    except SQLAlchemyError as e:
        raise LoadError(f"Error executing query: {getattr(e, 'orig', None) or e}", sql) from e


def count_rows(engine: Engine, name: str) -> int:
    try:
        with engine.connect() as conn:
            return int(conn.scalar(select(func.count()).select_from(table(name))))
    except SQLAlchemyError as e:
        raise LoadError(f"Failed to count rows in {name}: {e}") from e
