import logging
import sys
from typing import Optional

from azure_blob_sink.config import SinkOptions
from azure_blob_sink.handler import AzureBlobLogHandler

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def get_logger(name, blob_conn_str: Optional[str] = None, level=logging.DEBUG, **options):
    """
    Logger writing to stdout and to an Azure append blob.

    Blob settings come from the environment (see SinkOptions.from_env);
    blob_conn_str and keyword options override them.
    """
    logger = logging.getLogger(name=name)
    logger.setLevel(level)

    # Stream handler (Log Stream)
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)

    # Blob handler
    handler = AzureBlobLogHandler.from_options(
        SinkOptions.from_env(connection_string=blob_conn_str, **options)
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    logger.info("Blob logging initialized.")
    return logger
