"""
Log event model consumed by the sink.

LogEvent is immutable once produced. Its message template uses named holes
(`{Name}`, `{Name:spec}`, `{Name,-10}`, `{@Name}`, `{$Name}`) that are filled
from the event's properties at render time.
"""

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Protocol


class LogLevel(IntEnum):
    VERBOSE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    FATAL = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_logging(cls, levelno: int) -> "LogLevel":
        """Map a stdlib logging level number onto the nearest LogLevel."""
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFORMATION
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.VERBOSE

    @classmethod
    def parse(cls, value: "str | int | LogLevel") -> "LogLevel":
        """Accept a LogLevel, its integer value, or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        name = str(value).strip().upper()
        if name.isdigit():
            return cls(int(name))
        aliases = {"INFO": "INFORMATION", "WARN": "WARNING", "CRITICAL": "FATAL", "TRACE": "VERBOSE"}
        name = aliases.get(name, name)
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None


class FormatProvider(Protocol):
    def format_value(self, value: Any, spec: str | None) -> str: ...


class DefaultFormatProvider:
    """Formats values with the builtin format() protocol."""

    def format_value(self, value: Any, spec: str | None) -> str:
        if spec:
            try:
                return format(value, spec)
            except (ValueError, TypeError):
                return safe_str(value)
        return safe_str(value)


DEFAULT_FORMAT_PROVIDER = DefaultFormatProvider()


def safe_str(value: Any) -> str:
    """str() that never raises."""
    try:
        return str(value)
    except Exception:
        return f"<{type(value).__name__}>"


def _structured(value: Any) -> str:
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        try:
            if isinstance(value, (set, frozenset)):
                value = sorted(value, key=safe_str)
            return json.dumps(value, default=safe_str, ensure_ascii=False)
        except (TypeError, ValueError):
            return safe_str(value)
    return safe_str(value)


# {{ | }} | {[@$]Name[,align][:spec]}
_TOKEN = re.compile(r"\{\{|\}\}|\{([@$]?)([A-Za-z0-9_.]+)(?:,(-?\d+))?(?::([^{}]*))?\}")

# Attributes every LogRecord carries; anything else came in through `extra`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


@dataclass(frozen=True)
class LogEvent:
    timestamp: datetime
    level: LogLevel
    message_template: str
    properties: Mapping[str, Any] = field(default_factory=dict)
    exception: BaseException | None = None

    def __post_init__(self):
        # read-only view so the event stays immutable after construction
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    def render(self, format_provider: FormatProvider | None = None) -> str:
        """Fill the template holes from properties. Never raises."""
        provider = format_provider or DEFAULT_FORMAT_PROVIDER

        def _replace(match: re.Match) -> str:
            token = match.group(0)
            if token == "{{":
                return "{"
            if token == "}}":
                return "}"
            operator, name, align, spec = match.groups()
            if name not in self.properties:
                return token
            value = self.properties[name]
            if operator == "@":
                text = _structured(value)
            elif operator == "$":
                text = safe_str(value)
            else:
                try:
                    text = provider.format_value(value, spec)
                except Exception:
                    text = safe_str(value)
            if align:
                width = int(align)
                text = text.ljust(-width) if width < 0 else text.rjust(width)
            return text

        return _TOKEN.sub(_replace, self.message_template)

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> "LogEvent":
        """Build an event from a stdlib LogRecord."""
        properties = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        properties.setdefault("SourceContext", record.name)

        exception = None
        if record.exc_info and record.exc_info[1] is not None:
            exception = record.exc_info[1]

        return cls(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
            level=LogLevel.from_logging(record.levelno),
            # already formatted by logging; braces are literal text, not holes
            message_template=record.getMessage().replace("{", "{{").replace("}", "}}"),
            properties=properties,
            exception=exception,
        )
