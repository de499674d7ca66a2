from __future__ import annotations


class TsbenchError(Exception):
    """Base class for every error the CLI turns into a non-zero exit."""


class ConfigError(TsbenchError):
    pass


class InvalidFilePathError(TsbenchError):
    def __init__(self, path: str, reason: str = "no such file") -> None:
        super().__init__(f"Invalid file path {path!r}: {reason}")
        self.path = path


class DataFileError(TsbenchError):
    """Raised when a CSV or Parquet input cannot be parsed or written."""


class LoadError(TsbenchError):
    def __init__(self, message: str, statement: str | None = None) -> None:
        if statement:
            preview = statement if len(statement) <= 120 else statement[:117] + "..."
            message = f"{message} (statement: {preview})"
        super().__init__(message)
        self.statement = statement
