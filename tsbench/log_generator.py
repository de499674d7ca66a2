"""Synthetic web server access logs.

The table layout follows the Kaggle "Web Server Access Logs" dataset: users
visit pages from devices, every visit is a web log with one request and one
response, and a small share of visits emit error logs.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List

import numpy as np
import pandas as pd

from .config import GeneratorConfig
from .errors import DataFileError, InvalidFilePathError
from .schema import LOG_SCHEMAS, LOG_TABLE_NAMES

logger = logging.getLogger(__name__)

ADJECTIVES = ["quick", "lazy", "happy", "silent", "bright", "clever", "brave", "calm", "eager", "gentle"]
NOUNS = ["fox", "panda", "river", "falcon", "maple", "comet", "otter", "harbor", "tiger", "willow"]
FREE_EMAIL_DOMAINS = ["gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "proton.me"]
DOMAIN_SUFFIXES = ["com", "net", "org", "io", "info", "biz"]
LOREM_WORDS = [
    "lorem", "ipsum", "dolor", "sit", "amet", "consectetur", "adipiscing", "elit",
    "sed", "do", "eiusmod", "tempor", "incididunt", "labore", "magna", "aliqua",
]
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_5) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Mobile/15E148",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Mobile Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Edg/120.0",
]

HTTP_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]
HTTP_VERSIONS = ["HTTP/1.1", "HTTP/2", "HTTP/3"]
# More 2xx than 4xx/5xx
HTTP_STATUS_CODES = ["200", "201", "202", "204", "400", "401", "403", "404", "500", "502", "503"]
HTTP_STATUS_WEIGHTS = [40, 20, 10, 10, 5, 2, 2, 5, 3, 2, 1]

ERROR_LOG_PERCENT = 20
MAX_ERRORS_PER_LOG = 3
JITTER_US = 500_000
SECONDS_PER_YEAR = 365 * 24 * 3600
EPOCH = pd.Timestamp(0, tz="UTC")


def _to_us(ts: pd.Timestamp) -> int:
    return (ts - EPOCH) // pd.Timedelta(microseconds=1)


def _us_to_datetime(values) -> pd.Series:
    return pd.Series(pd.to_datetime(np.asarray(values, dtype="int64"), unit="us", utc=True))


class LogDataGenerator:
    """Builds the seven log tables as DataFrames keyed by table name."""

    def __init__(self, config: GeneratorConfig):
        self.config = config.validate()

    def _rng(self, offset: int) -> np.random.Generator:
        # each table draws from its own stream so adding columns to one table
        # does not shift the values of the others
        return np.random.default_rng([self.config.seed, offset])

    @property
    def start_us(self) -> int:
        return _to_us(pd.Timestamp(self.config.start))

    @property
    def end_us(self) -> int:
        return _to_us(pd.Timestamp(self.config.end))

    def generate(self) -> Dict[str, pd.DataFrame]:
        users = self.generate_users()
        pages = self.generate_pages()
        devices = self.generate_devices()
        web_logs = self.generate_web_logs(users, pages, devices)
        requests = self.generate_requests(web_logs, pages)
        responses = self.generate_responses(web_logs)
        error_logs = self.generate_error_logs(web_logs)
        tables = {
            "users": users,
            "pages": pages,
            "devices": devices,
            "web_logs": web_logs,
            "requests": requests,
            "responses": responses,
            "error_logs": error_logs,
        }
        for name, frame in tables.items():
            logger.debug("Generated %d rows for %s", len(frame), name)
        return tables

    def generate_users(self) -> pd.DataFrame:
        rng = self._rng(0)
        n = self.config.num_users
        usernames = [
            f"{rng.choice(ADJECTIVES)}_{rng.choice(NOUNS)}{rng.integers(0, 1000)}" for _ in range(n)
        ]
        emails = [f"{u}@{rng.choice(FREE_EMAIL_DOMAINS)}" for u in usernames]
        # signed up some time in the year before the first log
        before = rng.integers(1, SECONDS_PER_YEAR * 1_000_000, size=n)
        return pd.DataFrame({
            "user_id": np.arange(n, dtype="int32"),
            "username": usernames,
            "email": emails,
            "signup_date": _us_to_datetime(self.start_us - before),
        })

    def generate_pages(self) -> pd.DataFrame:
        rng = self._rng(1)
        n = self.config.num_pages
        urls: List[str] = []
        titles: List[str] = []
        for _ in range(n):
            name = f"{rng.choice(ADJECTIVES)}{rng.choice(NOUNS)}"
            urls.append(f"https://www.{name}.{rng.choice(DOMAIN_SUFFIXES)}")
            words = rng.choice(LOREM_WORDS, size=int(rng.integers(3, 6)))
            titles.append(" ".join(words).capitalize() + ".")
        return pd.DataFrame({
            "page_id": np.arange(n, dtype="int32"),
            "page_url": urls,
            "page_title": titles,
            "created_date": _us_to_datetime(np.full(n, self.start_us)),
        })

    def generate_devices(self) -> pd.DataFrame:
        # one device per user
        rng = self._rng(2)
        n = self.config.num_users
        return pd.DataFrame({
            "device_id": np.arange(n, dtype="int32"),
            "browser": list(rng.choice(USER_AGENTS, size=n)),
        })

    def generate_web_logs(self, users: pd.DataFrame, pages: pd.DataFrame, devices: pd.DataFrame) -> pd.DataFrame:
        """One log per interval step from time_start to time_end, both inclusive."""
        rng = self._rng(3)
        step = self.config.interval * 1_000_000
        base = np.arange(self.start_us, self.end_us + 1, step, dtype="int64")
        n = len(base)
        idx = np.arange(n)

        user_ids = users["user_id"].to_numpy()
        page_ids = pages["page_id"].to_numpy()
        device_ids = devices["device_id"].to_numpy()

        octets = rng.integers(1, 255, size=(n, 4))
        ips = [".".join(str(o) for o in row) for row in octets]
        jitter = rng.integers(-JITTER_US, JITTER_US, size=n)

        return pd.DataFrame({
            "log_id": idx.astype("int32"),
            "user_id": user_ids[idx % len(user_ids)].astype("int32"),
            "page_id": page_ids[idx % len(page_ids)].astype("int32"),
            "device_id": device_ids[idx % len(device_ids)].astype("int32"),
            "runtime": rng.integers(50, 300, size=n).astype("int32"),
            "ip_address": ips,
            "timestamp": _us_to_datetime(base + jitter),
        })

    def generate_requests(self, web_logs: pd.DataFrame, pages: pd.DataFrame) -> pd.DataFrame:
        rng = self._rng(4)
        n = len(web_logs)
        url_by_page = dict(zip(pages["page_id"], pages["page_url"]))
        return pd.DataFrame({
            "request_id": np.arange(n, dtype="int32"),
            "log_id": web_logs["log_id"].to_numpy(),
            "method": list(rng.choice(HTTP_METHODS, size=n)),
            "url": [url_by_page[p] for p in web_logs["page_id"]],
            "http_version": list(rng.choice(HTTP_VERSIONS, size=n)),
        })

    def generate_responses(self, web_logs: pd.DataFrame) -> pd.DataFrame:
        rng = self._rng(5)
        n = len(web_logs)
        weights = np.asarray(HTTP_STATUS_WEIGHTS, dtype=float)
        return pd.DataFrame({
            "response_id": np.arange(n, dtype="int32"),
            "log_id": web_logs["log_id"].to_numpy(),
            "status_code": list(rng.choice(HTTP_STATUS_CODES, size=n, p=weights / weights.sum())),
            "response_size": rng.integers(200, 500_000, size=n).astype("int32"),
            "response_time": rng.integers(1, 3_000, size=n).astype("int32"),
        })

    def generate_error_logs(self, web_logs: pd.DataFrame) -> pd.DataFrame:
        """Most logs produce no error; ERROR_LOG_PERCENT of them produce 1-3."""
        rng = self._rng(6)
        log_ids: List[int] = []
        codes: List[str] = []
        timestamps: List[int] = []

        base_us = ((web_logs["timestamp"] - EPOCH) // pd.Timedelta(microseconds=1)).to_numpy()
        for log_id, ts in zip(web_logs["log_id"], base_us):
            if rng.integers(0, 100) >= ERROR_LOG_PERCENT:
                continue
            for _ in range(int(rng.integers(1, MAX_ERRORS_PER_LOG + 1))):
                log_ids.append(int(log_id))
                codes.append(str(500 + int(rng.integers(0, 10))))
                timestamps.append(int(ts) + int(rng.integers(0, JITTER_US)))

        return pd.DataFrame({
            "error_log_id": np.arange(len(log_ids), dtype="int32"),
            "log_id": np.asarray(log_ids, dtype="int32"),
            "error_code": codes,
            "error_message": [f"Error message {c}" for c in codes],
            "timestamp": _us_to_datetime(timestamps),
        })


def table_path(directory: str, table: str) -> str:
    return os.path.join(directory, f"{table}.parquet")


def write_tables(tables: Dict[str, pd.DataFrame], output_dir: str) -> List[str]:
    """Write each table to ``<output_dir>/<table>.parquet``; returns the paths written."""
    os.makedirs(output_dir, exist_ok=True)
    paths: List[str] = []
    for name, frame in tables.items():
        path = table_path(output_dir, name)
        try:
            frame.to_parquet(path, index=False)
        except (OSError, ValueError) as e:
            raise DataFileError(f"Failed to write Parquet file {path}: {e}") from e
        logger.info("Wrote %d rows to %s", len(frame), path)
        paths.append(path)
    return paths


def read_tables(input_dir: str, names: List[str] | None = None) -> Dict[str, pd.DataFrame]:
    if not os.path.isdir(input_dir):
        raise InvalidFilePathError(input_dir, "not a directory")
    tables: Dict[str, pd.DataFrame] = {}
    for name in names or LOG_TABLE_NAMES:
        path = table_path(input_dir, name)
        if not os.path.exists(path):
            raise InvalidFilePathError(path)
        try:
            frame = pd.read_parquet(path)
        except (OSError, ValueError) as e:
            raise DataFileError(f"Failed to read Parquet file {path}: {e}") from e
        expected = LOG_SCHEMAS[name].column_names if name in LOG_SCHEMAS else list(frame.columns)
        missing = [c for c in expected if c not in frame.columns]
        if missing:
            raise DataFileError(f"Missing columns {missing} in {path}")
        tables[name] = frame[expected]
    return tables
