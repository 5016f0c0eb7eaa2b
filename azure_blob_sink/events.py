import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from azure_blob_sink.levels import from_logging_level, map_level
from azure_blob_sink.naming import iso_instant

# {{ and }} are literal braces; {Name}, {@Name}, {$Name} and {Name:fmt} are holes.
_TOKEN = re.compile(r"\{\{|\}\}|\{([@$]?)([A-Za-z_][A-Za-z0-9_.]*)(?::([^{}]*))?\}")


@dataclass(frozen=True)
class LogEvent:
    """
    A single structured log event.

    The message is kept as a template plus bound properties and only rendered
    when the batch is written.
    """
    timestamp: datetime
    level: int
    message_template: str
    properties: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, level: int, message_template: str, **properties) -> "LogEvent":
        return cls(
            timestamp=datetime.now(timezone.utc),
            level=level,
            message_template=message_template,
            properties=properties,
        )

    @classmethod
    def from_record(cls, record: logging.LogRecord, message: str) -> "LogEvent":
        """
        Build an event from a standard library record.

        `message` is the handler-formatted text; it is stored as a template with
        no properties so stray braces in it come out verbatim.
        """
        return cls(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
            level=from_logging_level(record.levelno),
            message_template=message,
        )

    def render(self) -> str:
        def substitute(match: re.Match) -> str:
            token = match.group(0)
            if token == "{{":
                return "{"
            if token == "}}":
                return "}"
            _, name, fmt = match.groups()
            if name not in self.properties:
                return token
            value = self.properties[name]
            if fmt:
                return format(value, fmt)
            return str(value)

        return _TOKEN.sub(substitute, self.message_template)

    def format_line(self) -> str:
        """[<timestamp> <Label>]: <rendered message>"""
        return f"[{iso_instant(self.timestamp)} {map_level(self.level)}]: {self.render()}"
