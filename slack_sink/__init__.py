from slack_sink.config import SinkSettings, settings
from slack_sink.core.activation import ActivationStatus, ActivationSwitch
from slack_sink.core.handler import SlackLogHandler
from slack_sink.core.sink import SinkStats, SlackSink
from slack_sink.scheduler.engine import BatchScheduler, PeriodicBatchingScheduler
from slack_sink.schemas.event import DefaultFormatProvider, FormatProvider, LogEvent, LogLevel
from slack_sink.schemas.message import Attachment, AttachmentField, Block, OutboundMessage, TextObject
from slack_sink.slack.client import SlackClient

__all__ = [
    "SinkSettings",
    "settings",
    "ActivationStatus",
    "ActivationSwitch",
    "SlackLogHandler",
    "SinkStats",
    "SlackSink",
    "BatchScheduler",
    "PeriodicBatchingScheduler",
    "DefaultFormatProvider",
    "FormatProvider",
    "LogEvent",
    "LogLevel",
    "Attachment",
    "AttachmentField",
    "Block",
    "OutboundMessage",
    "TextObject",
    "SlackClient",
]
