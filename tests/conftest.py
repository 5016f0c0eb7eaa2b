"""Shared test fixtures: an in-memory append-blob container and a manual timer."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from azure_blob_sink.config import SinkOptions
from azure_blob_sink.events import LogEvent
from azure_blob_sink.levels import INFORMATION
from azure_blob_sink.sink import AzureBlobSink

BASE_TIME = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


class FakeBlobClient:
    def __init__(self, container, name):
        self.container = container
        self.blob_name = name

    def exists(self):
        self.container.record("exists", self.blob_name)
        return self.blob_name in self.container.blobs

    def create_append_blob(self):
        self.container.record("create_append_blob", self.blob_name)
        self.container.put(self.blob_name, b"")

    def get_blob_properties(self):
        self.container.record("get_blob_properties", self.blob_name)
        if self.blob_name not in self.container.blobs:
            raise ResourceNotFoundError(f"{self.blob_name} not found")
        return SimpleNamespace(name=self.blob_name, size=len(self.container.blobs[self.blob_name].data))

    def append_block(self, data, length=None):
        self.container.record("append_block", self.blob_name, data)
        if self.blob_name not in self.container.blobs:
            raise ResourceNotFoundError(f"{self.blob_name} not found")
        blob = self.container.blobs[self.blob_name]
        blob.data += data
        blob.last_modified = self.container.tick()
        if self.container.on_append is not None:
            hook, self.container.on_append = self.container.on_append, None
            hook()


class FakeContainer:
    """
    Stand-in for azure.storage.blob.ContainerClient.

    Every backend call is recorded in `calls`; operations named in `fail_on`
    raise HttpResponseError, blob names in `fail_delete` fail to delete.
    """

    def __init__(self):
        self.blobs = {}
        self.calls = []
        self.fail_on = set()
        self.fail_delete = set()
        self.on_append = None
        self._clock = 0

    def tick(self):
        self._clock += 1
        return BASE_TIME + timedelta(seconds=self._clock)

    def record(self, op, name=None, data=None):
        self.calls.append((op, name, data))
        if op in self.fail_on:
            raise HttpResponseError(message=f"{op} failed (throttled)")

    def put(self, name, data, last_modified=None):
        self.blobs[name] = SimpleNamespace(data=bytes(data), last_modified=last_modified or self.tick())

    def get_blob_client(self, name):
        return FakeBlobClient(self, name)

    def list_blobs(self, name_starts_with=None):
        self.record("list_blobs", name_starts_with)
        for name, blob in list(self.blobs.items()):
            if name_starts_with is None or name.startswith(name_starts_with):
                yield SimpleNamespace(name=name, last_modified=blob.last_modified)

    def delete_blob(self, name):
        self.record("delete_blob", name)
        if name in self.fail_delete:
            raise HttpResponseError(message=f"cannot delete {name}")
        del self.blobs[name]

    def ops(self, op):
        return [c for c in self.calls if c[0] == op]

    def text(self, name):
        return self.blobs[name].data.decode("utf-8")


class FakeTimer:
    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function()


class TimerRecorder:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function):
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def active(self):
        return [t for t in self.timers if t.started and not t.cancelled]


class DiagnosticsRecorder:
    def __init__(self):
        self.reports = []

    def __call__(self, message, exc=None):
        self.reports.append((message, exc))


@pytest.fixture
def container():
    return FakeContainer()


@pytest.fixture
def timers():
    return TimerRecorder()


@pytest.fixture
def diagnostics():
    return DiagnosticsRecorder()


@pytest.fixture
def make_sink(container, timers, diagnostics):
    """Factory building a sink over the fake container; option overrides as kwargs."""
    created = []

    def factory(**overrides):
        options = SinkOptions.configure("UseDevelopmentStorage=true", "logs", "app.txt", **overrides)
        sink = AzureBlobSink(options, container=container, diagnostics=diagnostics,
                             timer_factory=timers)
        created.append(sink)
        return sink

    yield factory
    for sink in created:
        sink.stop(flush=False)


def make_event(message="Hello {Name}", level=INFORMATION, seconds=0, **properties):
    if message == "Hello {Name}" and not properties:
        properties = {"Name": "World"}
    return LogEvent(
        timestamp=BASE_TIME + timedelta(seconds=seconds),
        level=level,
        message_template=message,
        properties=properties,
    )
