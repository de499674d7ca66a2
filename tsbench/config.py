from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone

from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .errors import ConfigError

load_dotenv()

USE_CASES = ("measurement", "log")

DEFAULT_DATABASE_URL = "mysql+pymysql://127.0.0.1:4002"
DEFAULT_USQL_URL = "mysql://127.0.0.1:4002"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level {value!r}; expected one of {', '.join(LOG_LEVELS)}")
    return level


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp. A trailing ``Z`` and naive values are treated as UTC."""
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ConfigError(f"Unable to parse time {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class GeneratorConfig:
    interval: int = 60  # seconds between samples
    time_start: str = "2021-01-01T00:00:00Z"
    time_end: str = "2021-01-01T01:00:00Z"
    seed: int = field(default_factory=lambda: _env_int("TSBENCH_SEED", 123))
    limit: int = 10
    scale: int = 1  # number of series per timestamp
    use_case: str = "measurement"
    num_users: int = 10
    num_pages: int = 5

    @property
    def start(self) -> datetime:
        return parse_timestamp(self.time_start)

    @property
    def end(self) -> datetime:
        return parse_timestamp(self.time_end)

    def validate(self) -> "GeneratorConfig":
        if self.use_case not in USE_CASES:
            raise ConfigError(f"Unknown use case {self.use_case!r}; expected one of {', '.join(USE_CASES)}")
        if self.interval <= 0:
            raise ConfigError("interval must be positive")
        if self.limit <= 0:
            raise ConfigError("limit must be positive")
        if self.scale < 1:
            raise ConfigError("scale must be at least 1")
        if self.num_users < 1 or self.num_pages < 1:
            raise ConfigError("num_users and num_pages must be at least 1")
        if self.start >= self.end:
            raise ConfigError(f"time_start {self.time_start} must be before time_end {self.time_end}")
        return self


@dataclass
class LoaderConfig:
    database_url: str = field(default_factory=lambda: os.environ.get("TSBENCH_DATABASE_URL", DEFAULT_DATABASE_URL))
    database: str = field(default_factory=lambda: os.environ.get("TSBENCH_DATABASE", "public"))
    table: str = "measurement"
    workers: int = field(default_factory=lambda: _env_int("TSBENCH_WORKERS", 1))
    chunk_size: int = field(default_factory=lambda: _env_int("TSBENCH_CHUNK_SIZE", 1000))
    use_case: str = "measurement"
    drop_existing: bool = False

    def validate(self) -> "LoaderConfig":
        if self.use_case not in USE_CASES:
            raise ConfigError(f"Unknown use case {self.use_case!r}; expected one of {', '.join(USE_CASES)}")
        if self.workers < 1:
            raise ConfigError("workers must be at least 1")
        if self.chunk_size < 1:
            raise ConfigError("chunk_size must be at least 1")
        if not self.table.isidentifier():
            raise ConfigError(f"Invalid table name {self.table!r}")
        return self

    @property
    def url(self) -> str:
        """Database URL with the target database appended when the URL names none."""
        try:
            url = make_url(self.database_url)
        except ArgumentError as e:
            raise ConfigError(f"Invalid database URL {self.database_url!r}") from e
        if not url.database:
            url = url.set(database=self.database)
        return url.render_as_string(hide_password=False)
