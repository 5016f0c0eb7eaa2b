import logging
from typing import Optional

from azure.storage.blob import ContainerClient

from azure_blob_sink.config import SinkOptions
from azure_blob_sink.diagnostics import Diagnostics, log_diagnostic
from azure_blob_sink.events import LogEvent
from azure_blob_sink.sink import AzureBlobSink, configure

# Records from these loggers are produced while a batch is being written;
# feeding them back into the sink would loop.
_INTERNAL_LOGGERS = ("azure", "azure_blob_sink", "urllib3")


class _SkipInternalRecords(logging.Filter):
    def filter(self, record):
        return not any(
            record.name == name or record.name.startswith(name + ".")
            for name in _INTERNAL_LOGGERS
        )


class AzureBlobLogHandler(logging.Handler):
    """
    logging.Handler front end for AzureBlobSink.

    Records are formatted with the handler's formatter and buffered by the
    sink; flush() writes the buffer out, close() stops the sink's timer.
    """

    def __init__(self, conn_str: str = "", container_name: str = "", file_name: str = "",
                 level=logging.NOTSET, sink: Optional[AzureBlobSink] = None,
                 container: Optional[ContainerClient] = None,
                 diagnostics: Diagnostics = log_diagnostic, **options):
        super().__init__(level)
        if sink is None:
            sink = configure(conn_str, container_name, file_name,
                             container=container, diagnostics=diagnostics, **options)
        self.sink = sink
        self.addFilter(_SkipInternalRecords())

    @classmethod
    def from_options(cls, options: SinkOptions, level=logging.NOTSET,
                     container: Optional[ContainerClient] = None,
                     diagnostics: Diagnostics = log_diagnostic) -> "AzureBlobLogHandler":
        sink = AzureBlobSink(options, container=container, diagnostics=diagnostics)
        return cls(level=level, sink=sink)

    def emit(self, record):
        try:
            event = LogEvent.from_record(record, self.format(record))
            self.sink.emit([event])
        except Exception:
            self.handleError(record)

    def flush(self):
        self.sink.flush()

    def close(self):
        try:
            self.sink.stop()
        finally:
            super().close()
