"""Load generated data into the database as INSERT statements.

The measurement use case reads the CSV written by ``generate_data`` (gzip when
the file name ends in ``.gz``, or ``-`` for stdin). The log use case reads the
seven Parquet tables. In both cases the table is created first and the rows are
sent as one multi-row INSERT per chunk.
"""

from __future__ import annotations

import csv
import gzip
import logging
import os
import sys
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import IO, Iterable, Iterator, List, Optional, Set, Tuple

import pandas as pd

from .config import LoaderConfig
from .errors import DataFileError, InvalidFilePathError
from .log_generator import read_tables
from .schema import LOG_TABLE_NAMES, TableSchema, measurement_schema, schema_for_frame
from .sinks import SqlSink
from .statements import create_table_stmt, drop_table_stmt, insert_frame_stmt

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    table: str
    rows: int
    statements: int
    elapsed: float

    @property
    def rows_per_second(self) -> float:
        return self.rows / self.elapsed if self.elapsed > 0 else 0.0


def open_input(path: str) -> IO[str]:
    if path == "-":
        return sys.stdin
    if not os.path.isfile(path):
        raise InvalidFilePathError(path)
    if path.endswith(".gz"):
        return gzip.open(path, "rt", encoding="utf-8", newline="")
    return open(path, "r", encoding="utf-8", newline="")


def read_header(stream: IO[str]) -> List[str]:
    line = stream.readline()
    if not line.strip():
        raise DataFileError("Input is empty; expected a CSV header line")
    return [c.strip() for c in next(csv.reader([line]))]


def iter_csv_chunks(stream: IO[str], columns: List[str], chunk_size: int) -> Iterator[pd.DataFrame]:
    # ts and tag stay strings; the database parses timestamps itself
    dtype = {c: str for c in columns if c in ("ts", "tag")}
    try:
        reader = pd.read_csv(stream, names=columns, header=None, dtype=dtype, chunksize=chunk_size, skipinitialspace=True)
        for chunk in reader:
            yield chunk
    except pd.errors.EmptyDataError:
        return
    except (pd.errors.ParserError, UnicodeDecodeError, OSError, EOFError) as e:
        raise DataFileError(f"Failed to read CSV input: {e}") from e


def chunk_frame(frame: pd.DataFrame, chunk_size: int) -> Iterator[pd.DataFrame]:
    for start in range(0, len(frame), chunk_size):
        yield frame.iloc[start:start + chunk_size]


def _insert(sink: SqlSink, table: str, frame: pd.DataFrame) -> int:
    sink.execute(insert_frame_stmt(table, frame))
    return len(frame)


def insert_frames(sink: SqlSink, table: str, frames: Iterable[pd.DataFrame], workers: int = 1) -> Tuple[int, int]:
    """Insert every non-empty frame as one statement; returns (rows, statements).

    With several workers at most ``2 * workers`` statements are in flight so the
    input is not read into memory ahead of the database.
    """
    rows = statements = 0
    if workers <= 1:
        for frame in frames:
            if frame.empty:
                continue
            rows += _insert(sink, table, frame)
            statements += 1
        return rows, statements

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tsbench-load") as pool:
        pending: Set[Future] = set()
        try:
            for frame in frames:
                if frame.empty:
                    continue
                pending.add(pool.submit(_insert, sink, table, frame))
                if len(pending) >= 2 * workers:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for fut in done:
                        rows += fut.result()
                        statements += 1
            for fut in wait(pending).done:
                rows += fut.result()
                statements += 1
        except BaseException:
            for fut in pending:
                fut.cancel()
            raise
    return rows, statements


def prepare_table(sink: SqlSink, schema: TableSchema, drop_existing: bool = False) -> int:
    """Create (and optionally first drop) the table; returns the statements issued."""
    issued = 0
    if drop_existing:
        sink.execute(drop_table_stmt(schema.name))
        issued += 1
    sink.execute(create_table_stmt(schema))
    return issued + 1


def load_frames(sink: SqlSink, schema: TableSchema, frames: Iterable[pd.DataFrame], config: LoaderConfig) -> LoadResult:
    started = time.perf_counter()
    ddl = prepare_table(sink, schema, config.drop_existing)
    rows, inserts = insert_frames(sink, schema.name, frames, config.workers)
    result = LoadResult(schema.name, rows, ddl + inserts, time.perf_counter() - started)
    logger.info(
        "Loaded %d rows into %s with %d statements in %.2fs (%.0f rows/s)",
        result.rows, result.table, result.statements, result.elapsed, result.rows_per_second,
    )
    return result


def load_csv(path: str, sink: SqlSink, config: LoaderConfig) -> LoadResult:
    config.validate()
    stream = open_input(path)
    try:
        columns = read_header(stream)
        chunks = iter_csv_chunks(stream, columns, config.chunk_size)
        first: Optional[pd.DataFrame] = next(chunks, None)
        schema = measurement_schema(config.table, columns, first)

        def frames() -> Iterator[pd.DataFrame]:
            if first is not None:
                yield first
            yield from chunks

        return load_frames(sink, schema, frames(), config)
    finally:
        if stream is not sys.stdin:
            stream.close()


def load_log_tables(input_dir: str, sink: SqlSink, config: LoaderConfig, names: Optional[List[str]] = None) -> List[LoadResult]:
    config.validate()
    tables = read_tables(input_dir, names or LOG_TABLE_NAMES)
    results: List[LoadResult] = []
    for name, frame in tables.items():
        schema = schema_for_frame(name, frame)
        results.append(load_frames(sink, schema, chunk_frame(frame, config.chunk_size), config))
    return results
