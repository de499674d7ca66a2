"""
tsbench generates synthetic time-series data and loads it into a time-series
database that speaks the MySQL wire protocol.

    tsbench generate_data | gzip > data.gz
    tsbench load --input data.gz
"""

from .config import GeneratorConfig, LoaderConfig
from .errors import ConfigError, DataFileError, InvalidFilePathError, LoadError, TsbenchError
from .generator import iter_rows, write_csv
from .loader import LoadResult, load_csv, load_log_tables
from .log_generator import LogDataGenerator, read_tables, write_tables
from .sinks import DatabaseSink, SqlSink, StdoutSink, UsqlSink
