import logging

from slack_sink.core.sink import SlackSink
from slack_sink.schemas.event import LogEvent

# Loggers on the sink's own delivery path. Forwarding their records would
# post about posting, forever.
IGNORED_LOGGERS = ("slack_sink", "httpx", "httpcore", "apscheduler")


class SlackLogHandler(logging.Handler):
    """Stdlib logging handler that feeds records into a SlackSink."""

    def __init__(self, sink: SlackSink, level: int = logging.NOTSET):
        super().__init__(level)
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        if _is_ignored(record.name):
            return
        try:
            self.sink.emit(LogEvent.from_record(record))
        except Exception:
            self.handleError(record)


def _is_ignored(name: str) -> bool:
    return any(name == prefix or name.startswith(prefix + ".") for prefix in IGNORED_LOGGERS)
