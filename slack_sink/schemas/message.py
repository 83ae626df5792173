from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TextObject(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = "mrkdwn"  # "mrkdwn" or "plain_text"
    text: str


class Block(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str  # section, header, divider, context
    block_id: str | None = None
    text: TextObject | None = None
    fields: list[TextObject] | None = None


class AttachmentField(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    value: str
    short: bool = False


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    fallback: str | None = None
    color: str | None = None
    pretext: str | None = None
    title: str | None = None
    text: str | None = None
    fields: list[AttachmentField] = Field(default_factory=list)
    footer: str | None = None
    footer_icon: str | None = None
    ts: int | None = None
    mrkdwn_in: list[str] = Field(default_factory=list)


class OutboundMessage(BaseModel):
    """A Slack incoming-webhook message. Built fresh per log event."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    attachments: list[Attachment] = Field(default_factory=list)
    blocks: list[Block] = Field(default_factory=list)
    channel: str | None = None
    username: str | None = None
    icon_emoji: str | None = None
    icon_url: str | None = None
    mrkdwn: bool | None = None
    link_names: bool | None = None
    parse: str | None = None
    thread_ts: str | None = None
    replace_original: bool | None = None
    delete_original: bool | None = None
    response_type: str | None = None

    def for_channel(self, channel: str) -> "OutboundMessage":
        """Return a copy addressed to another channel."""
        return self.model_copy(update={"channel": channel})

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the webhook JSON body, dropping unset fields and empty lists."""
        return _prune(self.model_dump(mode="json", exclude_none=True))


def _prune(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _prune(v) for k, v in value.items() if v is not None and v != []}
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value
