"""Destinations for generated SQL statements."""

from __future__ import annotations

import logging
import subprocess
import sys
import threading
from typing import IO, List, Optional

from sqlalchemy.engine import Engine

from .database import count_rows, execute_sql, make_engine
from .errors import LoadError

logger = logging.getLogger(__name__)


class SqlSink:
    """Base class. Subclasses must be safe to call from several loader threads."""

    name = "sink"

    def execute(self, sql: str) -> None:
        raise NotImplementedError("execute must be implemented by subclass.")

    def close(self) -> None:
        pass

    def __enter__(self) -> "SqlSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class DatabaseSink(SqlSink):
    name = "database"

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None, pool_size: int = 1):
        if engine is None:
            if url is None:
                raise ValueError("DatabaseSink needs a url or an engine")
            engine = make_engine(url, pool_size=pool_size)
        self.engine = engine
        self.affected_rows = 0
        self._lock = threading.Lock()

    def execute(self, sql: str) -> None:
        rowcount = execute_sql(self.engine, sql)
        if rowcount > 0:
            with self._lock:
                self.affected_rows += rowcount

    def count_rows(self, table_name: str) -> int:
        return count_rows(self.engine, table_name)

    def close(self) -> None:
        self.engine.dispose()


class StdoutSink(SqlSink):
    """Writes statements one per line, ready to pipe into a SQL client."""

    name = "stdout"

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def execute(self, sql: str) -> None:
        with self._lock:
            self.stream.write(sql)
            self.stream.write("\n")

    def close(self) -> None:
        self.stream.flush()


class UsqlSink(SqlSink):
    """Feeds each statement to a fresh ``usql <url>`` process on stdin."""

    name = "usql"

    def __init__(self, url: str, command: str = "usql"):
        self.args: List[str] = [command, url]

    def execute(self, sql: str) -> None:
        try:
            proc = subprocess.run(self.args, input=sql, capture_output=True, text=True, check=False)
        except OSError as e:
            raise LoadError(f"Failed to start {self.args[0]}: {e}", sql) from e
        if proc.returncode != 0:
            raise LoadError(f"{self.args[0]} exited with status {proc.returncode}: {proc.stderr.strip()}", sql)
        logger.debug("%s: %s", self.args[0], proc.stdout.strip())
