import logging

# Severity codes, most severe first. Each code is a filter threshold: an event
# passes when its code is <= the configured minimum.
FATAL = 1
ERROR = 3
WARNING = 7
INFORMATION = 15
DEBUG = 31
VERBOSE = 63

_LABELS = {
    FATAL: "Fatal",
    ERROR: "Error",
    WARNING: "Warning",
    DEBUG: "Debug",
    VERBOSE: "Verbose",
}


def map_level(code: int) -> str:
    """Return the display label for a severity code (Information by default)."""
    return _LABELS.get(code, "Information")


def from_logging_level(levelno: int) -> int:
    """
    Translate a standard library logging level into a severity code.
    """
    if levelno >= logging.CRITICAL:
        return FATAL
    if levelno >= logging.ERROR:
        return ERROR
    if levelno >= logging.WARNING:
        return WARNING
    if levelno >= logging.INFO:
        return INFORMATION
    if levelno >= logging.DEBUG:
        return DEBUG
    return VERBOSE
