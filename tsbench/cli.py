from __future__ import annotations

import argparse
import gzip
import logging
import os
import sys
from typing import List, Optional

from .config import DEFAULT_USQL_URL, USE_CASES, GeneratorConfig, LoaderConfig, parse_log_level
from .errors import TsbenchError
from .generator import write_csv
from .loader import load_csv, load_log_tables
from .log_generator import LogDataGenerator, write_tables
from .sinks import DatabaseSink, SqlSink, StdoutSink, UsqlSink

logger = logging.getLogger("tsbench")

USAGE = """Usage: tsbench <command>
Commands:
  generate_data     Generate data
  load              Generate insert statements and send to the database
  generate_queries  Generate queries
"""


def _add_generate_args(p: argparse.ArgumentParser) -> None:
    defaults = GeneratorConfig
    p.add_argument("--use-case", choices=USE_CASES, default=defaults.use_case)
    p.add_argument("--interval", type=int, default=defaults.interval, help="Seconds between samples.")
    p.add_argument("--time-start", default=defaults.time_start, help="RFC 3339 start time (inclusive).")
    p.add_argument("--time-end", default=defaults.time_end, help="RFC 3339 end time.")
    p.add_argument("--seed", type=int, default=None, help="Defaults to TSBENCH_SEED or 123.")
    p.add_argument("--limit", type=int, default=defaults.limit, help="Values are drawn from [0, limit).")
    p.add_argument("--scale", type=int, default=defaults.scale, help="Number of series per timestamp.")
    p.add_argument("--num-users", type=int, default=defaults.num_users, help="Log use case only.")
    p.add_argument("--num-pages", type=int, default=defaults.num_pages, help="Log use case only.")
    p.add_argument(
        "--output", "-o",
        default="-",
        help="CSV destination for the measurement use case; '-' is stdout, a .gz suffix compresses.",
    )
    p.add_argument("--output-dir", default=".", help="Parquet directory for the log use case.")


def _add_load_args(p: argparse.ArgumentParser) -> None:
    defaults = LoaderConfig
    p.add_argument("--use-case", choices=USE_CASES, default=defaults.use_case)
    p.add_argument(
        "--input", "-i",
        default=None,
        help="CSV file ('-' for stdin) or Parquet directory. Defaults to ./data.gz or the current directory.",
    )
    p.add_argument("--table", default=defaults.table, help="Target table for the measurement use case.")
    # None falls back to the TSBENCH_* environment when the config is built
    p.add_argument("--database-url", default=None)
    p.add_argument("--database", default=None)
    p.add_argument("--workers", type=int, default=None)
    p.add_argument("--chunk-size", type=int, default=None, help="Rows per INSERT statement.")
    p.add_argument("--drop-existing", action="store_true", help="Drop the target table(s) before loading.")
    p.add_argument(
        "--sink",
        choices=["database", "stdout", "usql"],
        default="database",
        help="Where statements go: executed over the MySQL protocol, printed, or piped into usql.",
    )
    p.add_argument("--usql-url", default=DEFAULT_USQL_URL)
    p.add_argument("--verify", action="store_true", help="Count rows in the database after loading.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tsbench",
        description="Generate synthetic time-series data and load it into a time-series database.",
    )
    p.add_argument(
        "--log-level",
        default=os.environ.get("TSBENCH_LOG_LEVEL", "INFO"),
        help="DEBUG, INFO, WARNING or ERROR.",
    )
    sub = p.add_subparsers(dest="command")
    _add_generate_args(sub.add_parser("generate_data", help="Generate data"))
    _add_load_args(sub.add_parser("load", help="Generate insert statements and send to the database"))
    sub.add_parser("generate_queries", help="Generate queries")
    return p


def _given(**kwargs):
    return {k: v for k, v in kwargs.items() if v is not None}


def generate_data(args: argparse.Namespace) -> int:
    config = GeneratorConfig(**_given(
        interval=args.interval,
        time_start=args.time_start,
        time_end=args.time_end,
        seed=args.seed,
        limit=args.limit,
        scale=args.scale,
        use_case=args.use_case,
        num_users=args.num_users,
        num_pages=args.num_pages,
    )).validate()

    if config.use_case == "log":
        write_tables(LogDataGenerator(config).generate(), args.output_dir)
        return 0

    if args.output == "-":
        write_csv(config, sys.stdout)
    elif args.output.endswith(".gz"):
        with gzip.open(args.output, "wt", encoding="utf-8", newline="") as f:
            write_csv(config, f)
    else:
        with open(args.output, "w", encoding="utf-8", newline="") as f:
            write_csv(config, f)
    return 0


def _make_sink(args: argparse.Namespace, config: LoaderConfig) -> SqlSink:
    if args.sink == "stdout":
        return StdoutSink()
    if args.sink == "usql":
        return UsqlSink(args.usql_url)
    return DatabaseSink(config.url, pool_size=config.workers)


def load(args: argparse.Namespace) -> int:
    config = LoaderConfig(**_given(
        database_url=args.database_url,
        database=args.database,
        table=args.table,
        workers=args.workers,
        chunk_size=args.chunk_size,
        use_case=args.use_case,
        drop_existing=args.drop_existing,
    )).validate()

    with _make_sink(args, config) as sink:
        if config.use_case == "log":
            results = load_log_tables(args.input or ".", sink, config)
        else:
            results = [load_csv(args.input or "./data.gz", sink, config)]

        total = sum(r.rows for r in results)
        logger.info("Loaded %d rows into %d table(s) via %s", total, len(results), sink.name)

        if args.verify:
            if not isinstance(sink, DatabaseSink):
                logger.warning("--verify needs the database sink; skipping")
            else:
                for r in results:
                    stored = sink.count_rows(r.table)
                    logger.info("%s: %d rows stored, %d rows sent", r.table, stored, r.rows)
    return 0


def generate_queries(args: argparse.Namespace) -> int:
    logger.error("Query generation is not implemented")
    return 1


COMMANDS = {
    "generate_data": generate_data,
    "load": load,
    "generate_queries": generate_queries,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level_error = None
    try:
        level = parse_log_level(args.log_level)
    except TsbenchError as e:
        level, level_error = "INFO", e

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if level_error is not None:
        logger.error("%s", level_error)
        return 1

    if not args.command:
        sys.stdout.write(USAGE)
        return 0

    try:
        return COMMANDS[args.command](args)
    except TsbenchError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
