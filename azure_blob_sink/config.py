import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from azure_blob_sink.levels import VERBOSE

# ---- Environment variable names ----
CONNECTION_STRING_ENV = "AzureBlobStorageConnectionString"
CONTAINER_ENV = "AZURE_LOG_CONTAINER"
FILE_NAME_ENV = "AZURE_LOG_FILE_NAME"

DEFAULT_CONTAINER = "logs"
DEFAULT_FILE_NAME = "app.txt"


@dataclass(frozen=True)
class SinkOptions:
    """
    Construction-time configuration of an AzureBlobSink.

    Fixed for the lifetime of the sink. max_blob_size enables size-based
    rotation, retained_blob_count enables pruning of the oldest blobs.
    """
    connection_string: str
    container_name: str
    file_name: str
    period: float = 10.0
    batch_posting_limit: int = 100
    flush_immediately: bool = False
    minimum_level: int = VERBOSE
    disabled: bool = False
    max_blob_size: Optional[int] = None
    retained_blob_count: Optional[int] = None

    def __post_init__(self):
        if not self.flush_immediately and self.period <= 0:
            raise ValueError(f"period must be positive, got {self.period}")
        if self.batch_posting_limit < 1:
            raise ValueError(f"batch_posting_limit must be >= 1, got {self.batch_posting_limit}")
        if self.max_blob_size is not None and self.max_blob_size < 1:
            raise ValueError(f"max_blob_size must be positive, got {self.max_blob_size}")

    @classmethod
    def configure(cls, connection_string: str, container_name: str, file_name: str,
                  **overrides) -> "SinkOptions":
        """Merge caller-supplied options over the defaults; None means 'use the default'."""
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown sink option(s): {', '.join(sorted(unknown))}")
        options = cls(connection_string, container_name, file_name)
        given = {k: v for k, v in overrides.items() if v is not None}
        return replace(options, **given) if given else options

    @property
    def rotation_enabled(self) -> bool:
        return self.max_blob_size is not None

    @classmethod
    def from_env(cls, connection_string: Optional[str] = None, container_name: Optional[str] = None,
                 file_name: Optional[str] = None, **overrides) -> "SinkOptions":
        """
        Build options from environment variables (a local .env file is loaded first).
        Explicit arguments win over the environment.

        Raises RuntimeError when no connection string is given or set.
        """
        load_dotenv(find_dotenv(usecwd=True), override=False)
        conn_str = connection_string or os.getenv(CONNECTION_STRING_ENV)
        if not conn_str:
            raise RuntimeError(f"{CONNECTION_STRING_ENV} environment variable not set.")

        from_env = {
            "period": _env_float("AZURE_LOG_PERIOD"),
            "batch_posting_limit": _env_int("AZURE_LOG_BATCH_POSTING_LIMIT"),
            "flush_immediately": _env_bool("AZURE_LOG_FLUSH_IMMEDIATELY"),
            "minimum_level": _env_int("AZURE_LOG_MINIMUM_LEVEL"),
            "disabled": _env_bool("AZURE_LOG_DISABLED"),
            "max_blob_size": _env_int("AZURE_LOG_MAX_BLOB_SIZE"),
            "retained_blob_count": _env_int("AZURE_LOG_RETAINED_BLOB_COUNT"),
        }
        from_env.update(overrides)
        return cls.configure(
            conn_str,
            container_name or os.getenv(CONTAINER_ENV, DEFAULT_CONTAINER),
            file_name or os.getenv(FILE_NAME_ENV, DEFAULT_FILE_NAME),
            **from_env,
        )


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


def _env_bool(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if not value:
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")
