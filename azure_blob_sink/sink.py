"""Buffering sink that batches log events into an Azure append blob."""
import functools
import logging
import threading
from enum import Enum
from typing import Callable, Iterable, List, Optional

from azure.storage.blob import ContainerClient

from azure_blob_sink.blob_writer import BlobWriter
from azure_blob_sink.config import SinkOptions
from azure_blob_sink.diagnostics import Diagnostics, log_diagnostic
from azure_blob_sink.events import LogEvent

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


class SinkState(str, Enum):
    TIMED = "timed"
    IMMEDIATE = "immediate"
    DISABLED = "disabled"
    STOPPED = "stopped"


class AzureBlobSink:
    """
    Collects log events in memory and appends them to blob storage in batches.

    A batch is written when the periodic timer fires, when the buffer reaches
    batch_posting_limit, or on every emit in flush_immediately mode. Writes are
    best-effort: nothing raised by the backend reaches the caller, failures are
    reported to `diagnostics` and the affected batch is dropped.

    Only one flush runs at a time. A flush requested while another is running is
    remembered and performed by the running one before it returns.

    The periodic timer runs until stop() (or close()) is called.
    """

    def __init__(self, options: SinkOptions, container: Optional[ContainerClient] = None,
                 diagnostics: Diagnostics = log_diagnostic,
                 timer_factory: TimerFactory = threading.Timer):
        self.options = options
        self.diagnostics = diagnostics
        self.writer = BlobWriter(options, container=container, diagnostics=diagnostics)

        self._buffer: List[LogEvent] = []
        self._lock = threading.Lock()
        self._flushing = False
        self._flush_pending = False

        self._timer_factory = timer_factory
        self._timer: Optional[threading.Timer] = None
        self._timer_generation = 0
        self._timer_lock = threading.Lock()

        self._stats = {
            "batches_sent": 0,
            "events_sent": 0,
            "flush_errors": 0,
            "events_filtered": 0,
        }

        if options.disabled:
            self.state = SinkState.DISABLED
        elif options.flush_immediately:
            self.state = SinkState.IMMEDIATE
        else:
            self.state = SinkState.TIMED
            self._start_timer()
            logger.debug("Azure blob sink started (period=%ss, batch=%d)",
                         options.period, options.batch_posting_limit)

    def __str__(self) -> str:
        return "AzureBlobSink"

    def __enter__(self) -> "AzureBlobSink":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ---------------------------------------------------------------------
    # Timer
    # ---------------------------------------------------------------------
    def _start_timer(self, expected_generation: Optional[int] = None) -> bool:
        """
        (Re)arm the periodic flush so the next tick is `period` seconds from now.

        With `expected_generation`, only re-arm if no other re-arm happened since
        that timer was started. Returns whether a timer was armed.
        """
        with self._timer_lock:
            if self.state is not SinkState.TIMED:
                return False
            if expected_generation is not None and expected_generation != self._timer_generation:
                return False
            if self._timer is not None:
                self._timer.cancel()
            self._timer_generation += 1
            timer = self._timer_factory(
                self.options.period, functools.partial(self._on_timer, self._timer_generation)
            )
            timer.daemon = True
            self._timer = timer
            timer.start()
            return True

    def _on_timer(self, generation: int) -> None:
        # A tick from a timer that was re-armed meanwhile must not re-arm again.
        if self._start_timer(expected_generation=generation):
            self.flush()

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def emit(self, events: Iterable[LogEvent]) -> None:
        try:
            if self.options.disabled:
                return

            events = list(events)
            accepted = [e for e in events if e.level <= self.options.minimum_level]
            with self._lock:
                self._buffer.extend(accepted)
                buffered = len(self._buffer)
                self._stats["events_filtered"] += len(events) - len(accepted)

            if self.options.flush_immediately:
                self.flush()
                return

            if buffered >= self.options.batch_posting_limit:
                self._start_timer()
                self.flush()
        except Exception as e:
            self.diagnostics("There was an issue while processing event.", e)

    def flush(self) -> None:
        if self.options.disabled:
            return

        with self._lock:
            if self._flushing:
                self._flush_pending = True
                return
            if not self._buffer:
                return
            self._flushing = True

        try:
            while True:
                with self._lock:
                    batch, self._buffer = self._buffer, []
                    self._flush_pending = False
                if batch:
                    self._write_batch(batch)
                # Exit check and flag reset share one critical section.
                with self._lock:
                    if not (self._flush_pending and self._buffer):
                        self._flushing = False
                        return
        except BaseException:
            with self._lock:
                self._flushing = False
            raise

    def stop(self, flush: bool = True) -> None:
        """Cancel the periodic timer and, by default, write whatever is still buffered."""
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self.state is not SinkState.DISABLED:
                self.state = SinkState.STOPPED
        if flush:
            self.flush()
        logger.debug("Azure blob sink stopped. Stats: %s", self._stats)

    close = stop

    @property
    def buffer_size(self) -> int:
        return len(self._buffer)

    @property
    def active_blob_name(self) -> str:
        return self.writer.active_blob_name

    @property
    def stats(self) -> dict:
        return {**self._stats, "buffer_size": self.buffer_size}

    # ---------------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------------
    def _write_batch(self, batch: List[LogEvent]) -> None:
        lines = []
        for event in batch:
            try:
                lines.append(event.format_line())
            except Exception as e:
                self.diagnostics("Failed to render log event, skipping it.", e)
        if not lines:
            return

        if self.writer.write("\n".join(lines) + "\n"):
            self._stats["batches_sent"] += 1
            self._stats["events_sent"] += len(lines)
        else:
            self._stats["flush_errors"] += 1


def configure(connection_string: str, container_name: str, file_name: str,
              container: Optional[ContainerClient] = None,
              diagnostics: Diagnostics = log_diagnostic,
              timer_factory: TimerFactory = threading.Timer,
              **options) -> AzureBlobSink:
    """
    Create a sink from the required settings plus any option overrides.

        sink = configure(conn_str, "logs", "app.txt", batch_posting_limit=50)
    """
    sink_options = SinkOptions.configure(connection_string, container_name, file_name, **options)
    return AzureBlobSink(sink_options, container=container, diagnostics=diagnostics,
                         timer_factory=timer_factory)
