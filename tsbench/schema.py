from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

TAG = "tag"
FIELD = "field"
TIMESTAMP = "timestamp"

# column dtype -> database type
SQL_TYPES = {
    "int": "INT",
    "bigint": "BIGINT",
    "float": "DOUBLE",
    "str": "STRING",
    "timestamp": "TIMESTAMP",
    "timestamp_us": "TIMESTAMP(6)",
}

# Time index added to tables whose rows carry no timestamp of their own
DEFAULT_TIME_INDEX = "ts"


@dataclass(frozen=True)
class Column:
    name: str
    role: str  # tag / field / timestamp
    dtype: str

    @property
    def sql_type(self) -> str:
        return SQL_TYPES[self.dtype]


@dataclass
class TableSchema:
    name: str
    columns: List[Column] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def tags(self) -> List[Column]:
        return [c for c in self.columns if c.role == TAG]

    @property
    def time_index(self) -> Optional[Column]:
        for c in self.columns:
            if c.role == TIMESTAMP:
                return c
        return None


def tag(name: str, dtype: str) -> Column:
    return Column(name, TAG, dtype)


def field_(name: str, dtype: str) -> Column:
    return Column(name, FIELD, dtype)


def timestamp(name: str, dtype: str = "timestamp_us") -> Column:
    return Column(name, TIMESTAMP, dtype)


LOG_TABLE_NAMES = ["users", "pages", "devices", "web_logs", "requests", "responses", "error_logs"]

LOG_SCHEMAS: Dict[str, TableSchema] = {
    "users": TableSchema("users", [
        tag("user_id", "int"),
        field_("username", "str"),
        field_("email", "str"),
        timestamp("signup_date"),
    ]),
    "pages": TableSchema("pages", [
        tag("page_id", "int"),
        field_("page_url", "str"),
        field_("page_title", "str"),
        timestamp("created_date"),
    ]),
    "devices": TableSchema("devices", [
        tag("device_id", "int"),
        field_("browser", "str"),
    ]),
    "web_logs": TableSchema("web_logs", [
        tag("log_id", "int"),
        field_("user_id", "int"),
        field_("page_id", "int"),
        field_("device_id", "int"),
        field_("runtime", "int"),
        field_("ip_address", "str"),
        timestamp("timestamp"),
    ]),
    "requests": TableSchema("requests", [
        tag("request_id", "int"),
        field_("log_id", "int"),
        field_("method", "str"),
        field_("url", "str"),
        field_("http_version", "str"),
    ]),
    "responses": TableSchema("responses", [
        tag("response_id", "int"),
        field_("log_id", "int"),
        field_("status_code", "str"),
        field_("response_size", "int"),
        field_("response_time", "int"),
    ]),
    "error_logs": TableSchema("error_logs", [
        tag("error_log_id", "int"),
        field_("log_id", "int"),
        field_("error_code", "str"),
        field_("error_message", "str"),
        timestamp("timestamp"),
    ]),
}


def _dtype_of(series: pd.Series) -> str:
    if pd.api.types.is_bool_dtype(series):
        return "str"
    if pd.api.types.is_integer_dtype(series):
        return "bigint"
    if pd.api.types.is_float_dtype(series):
        return "float"
    if pd.api.types.is_datetime64_any_dtype(series):
        return "timestamp_us"
    return "str"


def measurement_schema(name: str, columns: List[str], frame: Optional[pd.DataFrame] = None) -> TableSchema:
    """Schema for a CSV header: ``tag`` is the primary key, ``ts`` the time index.

    Without a sample frame every other column is a string field; with one the
    field types follow the pandas dtypes.
    """
    cols: List[Column] = []
    for col in columns:
        if col == "tag":
            cols.append(tag(col, "str"))
        elif col == "ts":
            cols.append(timestamp(col, "timestamp"))
        elif frame is not None and col in frame.columns:
            cols.append(field_(col, _dtype_of(frame[col])))
        else:
            cols.append(field_(col, "str"))
    return TableSchema(name, cols)


def schema_for_frame(name: str, frame: pd.DataFrame) -> TableSchema:
    """Known log schemas win; anything else is inferred from the frame."""
    if name in LOG_SCHEMAS:
        return LOG_SCHEMAS[name]
    return measurement_schema(name, list(frame.columns), frame)
