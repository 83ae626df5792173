"""
Default Slack message generation for log events.

Three independent strategies build the text, the attachments and the blocks
of a message. Each takes (event, format_provider, options) and is pure.
MessageFormatter bundles one of each per sink instance, falling back to the
defaults below for any strategy the caller does not supply.
"""

import traceback
from collections.abc import Callable
from typing import TypeVar

from slack_sink.config import SinkSettings
from slack_sink.schemas.event import FormatProvider, LogEvent, LogLevel, safe_str
from slack_sink.schemas.message import (
    Attachment,
    AttachmentField,
    Block,
    OutboundMessage,
    TextObject,
)

T = TypeVar("T")
Strategy = Callable[[LogEvent, FormatProvider, SinkSettings], T]

TextGenerator = Strategy[str]
AttachmentsGenerator = Strategy[list[Attachment]]
BlocksGenerator = Strategy[list[Block]]

HEADER_LIMIT = 150  # Slack caps header block text


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def format_exception(exc: BaseException, limit: int) -> str:
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return _truncate(trace.rstrip(), limit)


def exception_title(exc: BaseException) -> str:
    message = safe_str(exc)
    name = type(exc).__name__
    return f"{name}: {message}" if message else name


# ---------------------------------------------------------------------------
# Default strategies
# ---------------------------------------------------------------------------
def generate_text(event: LogEvent, format_provider: FormatProvider, options: SinkSettings) -> str:
    label = f"*{event.level.label}*" if options.MARKDOWN else event.level.label
    return f"[{label}] {event.render(format_provider)}"


def generate_attachments(
    event: LogEvent, format_provider: FormatProvider, options: SinkSettings
) -> list[Attachment]:
    attachments: list[Attachment] = []

    if options.ADD_SHORT_INFO_ATTACHMENT:
        fields = [
            AttachmentField(title="Level", value=event.level.label, short=True),
            AttachmentField(
                title="Timestamp",
                value=format_provider.format_value(event.timestamp, "%Y-%m-%d %H:%M:%S.%f %Z"),
                short=True,
            ),
        ]
        if options.ADD_PROPERTY_FIELDS:
            for name, value in event.properties.items():
                fields.append(AttachmentField(title=name, value=safe_str(value), short=True))

        attachments.append(Attachment(
            fallback=f"[{event.level.label}] {event.render(format_provider)}",
            color=options.color_for(event.level),
            fields=fields,
            footer=options.ATTACHMENT_FOOTER,
            footer_icon=options.ATTACHMENT_FOOTER_ICON,
            ts=int(event.timestamp.timestamp()),
        ))

    if options.ADD_EXCEPTION_ATTACHMENT and event.exception is not None:
        trace = format_exception(event.exception, options.TRACEBACK_LIMIT)
        attachments.append(Attachment(
            fallback=exception_title(event.exception),
            color=options.color_for(LogLevel.ERROR),
            title=exception_title(event.exception),
            text=f"```{trace}```",
            mrkdwn_in=["text"],
        ))

    return attachments


def generate_blocks(event: LogEvent, format_provider: FormatProvider, options: SinkSettings) -> list[Block]:
    if not options.ADD_EXCEPTION_BLOCKS or event.exception is None:
        return []

    trace = format_exception(event.exception, options.TRACEBACK_LIMIT)
    return [
        Block(
            type="header",
            text=TextObject(type="plain_text", text=_truncate(exception_title(event.exception), HEADER_LIMIT)),
        ),
        Block(
            type="section",
            fields=[
                TextObject(text=f"*Level*\n{event.level.label}"),
                TextObject(text=f"*Message*\n{_truncate(event.render(format_provider), 1900)}"),
            ],
        ),
        Block(type="section", text=TextObject(text=f"```{trace}```")),
    ]


# ---------------------------------------------------------------------------
# Per-sink bundle
# ---------------------------------------------------------------------------
class MessageFormatter:
    """Builds OutboundMessages using this instance's three strategies."""

    def __init__(
        self,
        options: SinkSettings,
        format_provider: FormatProvider,
        text: TextGenerator | None = None,
        attachments: AttachmentsGenerator | None = None,
        blocks: BlocksGenerator | None = None,
    ):
        self.options = options
        self.format_provider = format_provider
        self.text = text or generate_text
        self.attachments = attachments or generate_attachments
        self.blocks = blocks or generate_blocks

    def build(self, event: LogEvent, channel: str | None = None) -> OutboundMessage:
        opts = self.options
        return OutboundMessage(
            text=self.text(event, self.format_provider, opts),
            attachments=self.attachments(event, self.format_provider, opts) or [],
            blocks=self.blocks(event, self.format_provider, opts) or [],
            channel=channel,
            username=opts.USERNAME,
            icon_emoji=opts.ICON_EMOJI,
            icon_url=opts.ICON_URL,
            mrkdwn=opts.MARKDOWN,
            link_names=opts.LINK_NAMES,
            parse=opts.PARSE,
            thread_ts=opts.THREAD_TS,
            replace_original=opts.REPLACE_ORIGINAL,
            delete_original=opts.DELETE_ORIGINAL,
            response_type=opts.RESPONSE_TYPE,
        )
