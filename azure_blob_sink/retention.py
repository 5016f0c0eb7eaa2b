from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from azure.storage.blob import ContainerClient

from azure_blob_sink.diagnostics import Diagnostics, log_diagnostic
from azure_blob_sink.naming import TXT_SUFFIX


@dataclass(frozen=True)
class BlobDescriptor:
    name: str
    last_modified: datetime


def belongs_to(name: str, prefix: str) -> bool:
    """The base blob itself, or a rotated blob named <prefix>-<suffix>."""
    return name in (prefix, prefix + TXT_SUFFIX) or name.startswith(prefix + "-")


def select_blobs_to_delete(blobs: Iterable[BlobDescriptor], prefix: str,
                           retain_limit: Optional[int]) -> List[BlobDescriptor]:
    """
    Pick the oldest blobs belonging to `prefix` so that exactly `retain_limit` remain.

    Returns an empty list when retention is off (limit unset or below 1).
    Blobs with equal last_modified keep their listing order.
    """
    if retain_limit is None or retain_limit < 1:
        return []
    matching = [b for b in blobs if belongs_to(b.name, prefix)]
    excess = len(matching) - retain_limit
    if excess <= 0:
        return []
    matching.sort(key=lambda b: b.last_modified)
    return matching[:excess]


def list_blobs(container: ContainerClient, prefix: str) -> List[BlobDescriptor]:
    return [
        BlobDescriptor(name=props.name, last_modified=props.last_modified)
        for props in container.list_blobs(name_starts_with=prefix)
    ]


def enforce_retention(container: ContainerClient, prefix: str, retain_limit: Optional[int],
                      diagnostics: Diagnostics = log_diagnostic) -> List[str]:
    """
    Delete the oldest blobs past `retain_limit`. Returns the names actually deleted.

    Each delete is independent: one failure is reported and the rest are still
    attempted. Listing failures propagate to the caller.
    """
    if retain_limit is None or retain_limit < 1:
        return []

    deleted = []
    for blob in select_blobs_to_delete(list_blobs(container, prefix), prefix, retain_limit):
        try:
            container.delete_blob(blob.name)
            deleted.append(blob.name)
        except Exception as e:
            diagnostics(f"Failed to delete expired log blob '{blob.name}'.", e)
    return deleted
