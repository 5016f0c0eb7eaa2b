"""Buffered log sink writing to Azure Storage append blobs."""

from azure_blob_sink.config import SinkOptions
from azure_blob_sink.events import LogEvent
from azure_blob_sink.handler import AzureBlobLogHandler
from azure_blob_sink.levels import map_level
from azure_blob_sink.sink import AzureBlobSink, SinkState, configure

__all__ = [
    "AzureBlobLogHandler",
    "AzureBlobSink",
    "LogEvent",
    "SinkOptions",
    "SinkState",
    "configure",
    "map_level",
]
