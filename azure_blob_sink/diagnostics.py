"""
Local diagnostic channel for failures the sink swallows.

The sink never raises into the code that logs. Whatever it drops is reported
here instead, through a plain callable so callers can redirect it.
"""
import logging
import sys
from typing import Callable, Optional

Diagnostics = Callable[[str, Optional[BaseException]], None]

DIAGNOSTICS_LOGGER_NAME = "azure_blob_sink.diagnostics"


def _build_logger() -> logging.Logger:
    diag = logging.getLogger(DIAGNOSTICS_LOGGER_NAME)
    # Kept off the root logger: a sink attached there must not log into itself.
    diag.propagate = False
    if not diag.handlers:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        diag.addHandler(stream)
    return diag


diagnostics_logger = _build_logger()


def log_diagnostic(message: str, exc: Optional[BaseException] = None) -> None:
    """Default channel: write to the stderr-only diagnostics logger."""
    if exc is None:
        diagnostics_logger.warning(message)
    else:
        diagnostics_logger.error(
            "%s %s", message, exc, exc_info=(type(exc), exc, exc.__traceback__)
        )
