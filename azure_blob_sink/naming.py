from datetime import datetime, timezone
from typing import Optional

TXT_SUFFIX = ".txt"


def iso_instant(moment: datetime) -> str:
    """
    Format an instant as UTC ISO-8601 with millisecond precision,
    e.g. 2024-01-02T03:04:05.678Z.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + ".%03dZ" % (moment.microsecond // 1000)


def blob_prefix(base_file_name: str) -> str:
    """Base file name without its trailing .txt; shared by every rotated blob."""
    if base_file_name.endswith(TXT_SUFFIX):
        return base_file_name[: -len(TXT_SUFFIX)]
    return base_file_name


def new_blob_name(base_file_name: str, now: Optional[datetime] = None) -> str:
    """
    Derive a fresh blob name: logs/app.txt -> logs/app-2024-01-02T03-04-05-678Z.txt

    Two calls within the same millisecond return the same name.
    """
    now = now or datetime.now(timezone.utc)
    stamp = iso_instant(now).replace(":", "-").replace(".", "-")
    return f"{blob_prefix(base_file_name)}-{stamp}{TXT_SUFFIX}"
