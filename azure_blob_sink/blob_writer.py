"""Blob writer: appends formatted batches to the active append blob."""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from azure.storage.blob import ContainerClient

from azure_blob_sink.blob_utils import get_container_client
from azure_blob_sink.config import SinkOptions
from azure_blob_sink.diagnostics import Diagnostics, log_diagnostic
from azure_blob_sink.naming import blob_prefix, new_blob_name
from azure_blob_sink.retention import enforce_retention


@dataclass(frozen=True)
class TargetBlob:
    name: str
    rotated: bool = False


def decide_target(active_name: str, base_file_name: str, current_size: int, incoming_size: int,
                  max_blob_size: Optional[int], now: Optional[datetime] = None) -> TargetBlob:
    """
    Decide which blob the next append goes to.

    The size check is against the current blob; when the append would push it past
    max_blob_size a freshly named blob takes this write and every later one.
    """
    if max_blob_size is not None and current_size + incoming_size > max_blob_size:
        return TargetBlob(name=new_blob_name(base_file_name, now), rotated=True)
    return TargetBlob(name=active_name)


class BlobWriter:
    """
    Best-effort writer. write() never raises: failures go to the diagnostics
    channel and the batch is dropped.
    """

    def __init__(self, options: SinkOptions, container: Optional[ContainerClient] = None,
                 diagnostics: Diagnostics = log_diagnostic,
                 clock: Optional[Callable[[], datetime]] = None):
        self.options = options
        self.diagnostics = diagnostics
        self._container = container
        self._clock = clock
        self.prefix = blob_prefix(options.file_name)
        if options.rotation_enabled:
            self.active_blob_name = new_blob_name(options.file_name, self._now())
        else:
            self.active_blob_name = options.file_name

    def _now(self) -> Optional[datetime]:
        return self._clock() if self._clock else None

    @property
    def container(self) -> ContainerClient:
        # Lazily initialize and cache the container client.
        if self._container is None:
            self._container = get_container_client(
                self.options.connection_string, self.options.container_name
            )
        return self._container

    def write(self, content: str) -> bool:
        try:
            data = content.encode("utf-8")
            blob_client = self.container.get_blob_client(self.active_blob_name)

            # Ensure the blob exists, or create it as an append blob
            if not blob_client.exists():
                blob_client.create_append_blob()

            if self.options.rotation_enabled:
                current_size = blob_client.get_blob_properties().size
                target = decide_target(
                    self.active_blob_name, self.options.file_name,
                    current_size, len(data), self.options.max_blob_size, self._now(),
                )
                if target.rotated:
                    self.active_blob_name = target.name
                    blob_client = self.container.get_blob_client(target.name)
                    if not blob_client.exists():
                        blob_client.create_append_blob()

            blob_client.append_block(data, length=len(data))
        except Exception as e:
            self.diagnostics(
                f"Failed to upload to azure storage account "
                f"({self.options.container_name}/{self.active_blob_name}).", e
            )
            return False

        # The batch is stored at this point; a retention failure does not undo that.
        try:
            enforce_retention(
                self.container, self.prefix, self.options.retained_blob_count, self.diagnostics
            )
        except Exception as e:
            self.diagnostics(
                f"Failed to enforce log blob retention under "
                f"'{self.options.container_name}/{self.prefix}'.", e
            )
        return True
