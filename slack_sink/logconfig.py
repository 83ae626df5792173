import logging

import structlog

from slack_sink.config import settings

COMPONENT = "slack_sink"


def _add_component(logger, method_name, event_dict):
    event_dict.setdefault("component", COMPONENT)
    return event_dict


def configure_logging(renderer: str | None = None, level: str | None = None):
    """Configure structlog for the sink's own diagnostics.

    PrintLoggerFactory writes straight to stdout, so these logs never pass
    through a stdlib handler that might forward them back into the sink.
    Events below LOG_LEVEL are dropped before any processor runs; per-post
    debug events (slack.posted, sink.batch_emitted) only show at DEBUG.
    """
    renderer = renderer or settings.LOG_RENDERER
    level = level or settings.LOG_LEVEL
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _add_component,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.dev.ConsoleRenderer()
                if renderer == "console"
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
