"""SQL text for the target database.

Statements are rendered as literal SQL so the same text can be executed over
the MySQL protocol or piped into any SQL client.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Iterable, List, Sequence

import numpy as np
import pandas as pd

from .schema import DEFAULT_TIME_INDEX, TAG, TIMESTAMP, SQL_TYPES, TableSchema


def quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def format_value(value: Any) -> str:
    """Render one Python/numpy/pandas value as a SQL literal."""
    if value is None or value is pd.NaT or value is pd.NA:
        return "NULL"
    if isinstance(value, (bool, np.bool_)):
        return quote(str(bool(value)).lower())
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        if math.isnan(value):
            return "NULL"
        if math.isinf(value):
            return quote("inf" if value > 0 else "-inf")
        return repr(float(value))
    if isinstance(value, datetime):
        # pd.Timestamp is a datetime subclass
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return quote(value.isoformat())
    return quote(str(value))


def create_table_stmt(schema: TableSchema, if_not_exists: bool = True) -> str:
    columns_def: List[str] = []
    for col in schema.columns:
        if col.role == TIMESTAMP:
            columns_def.append(f"{col.name} {col.sql_type} DEFAULT CURRENT_TIMESTAMP() TIME INDEX")
        else:
            columns_def.append(f"{col.name} {col.sql_type}")
    if schema.time_index is None:
        columns_def.append(f"{DEFAULT_TIME_INDEX} {SQL_TYPES['timestamp']} DEFAULT CURRENT_TIMESTAMP() TIME INDEX")

    pk = [c.name for c in schema.columns if c.role == TAG]
    if pk:
        columns_def.append(f"PRIMARY KEY ({', '.join(pk)})")

    exists = "IF NOT EXISTS " if if_not_exists else ""
    return f"CREATE TABLE {exists}{schema.name} ({', '.join(columns_def)});"


def drop_table_stmt(table: str) -> str:
    return f"DROP TABLE IF EXISTS {table};"


def insert_stmt(table: str, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    values = [f"({','.join(format_value(v) for v in row)})" for row in rows]
    if not values:
        raise ValueError(f"No rows to insert into {table}")
    return f"INSERT INTO {table}({','.join(columns)}) VALUES {', '.join(values)};"


def insert_frame_stmt(table: str, frame: pd.DataFrame) -> str:
    return insert_stmt(table, list(frame.columns), frame.itertuples(index=False, name=None))
