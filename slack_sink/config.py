from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from slack_sink.schemas.event import LogLevel

DEFAULT_ATTACHMENT_COLORS = {
    "verbose": "#c0c0c0",
    "debug": "#c0c0c0",
    "information": "#2eb886",
    "warning": "#daa038",
    "error": "#a30200",
    "fatal": "#4a0000",
}


class SinkSettings(BaseSettings):
    model_config = {
        "env_prefix": "SLACK_SINK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    # Delivery
    WEBHOOK_URL: str = ""
    CONNECTION_TIMEOUT: float = Field(default=5.0, gt=0)  # seconds, per request

    # Batching
    BATCH_SIZE_LIMIT: int = Field(default=50, ge=1)
    PERIOD: float = Field(default=5.0, gt=0)  # seconds between flushes
    QUEUE_LIMIT: int = Field(default=10000, ge=1)

    # Channels: a non-empty CHANNELS list fans out and overrides CHANNEL
    CHANNEL: str | None = None
    CHANNELS: list[str] = Field(default_factory=list)

    # Message flags
    USERNAME: str | None = None
    ICON_EMOJI: str | None = None
    ICON_URL: str | None = None
    MARKDOWN: bool = True
    LINK_NAMES: bool = False
    PARSE: str | None = None
    THREAD_TS: str | None = None
    REPLACE_ORIGINAL: bool = False
    DELETE_ORIGINAL: bool = False
    RESPONSE_TYPE: str | None = None

    # Rendering
    MINIMUM_LEVEL: LogLevel = LogLevel.VERBOSE
    ADD_SHORT_INFO_ATTACHMENT: bool = True
    ADD_PROPERTY_FIELDS: bool = False
    ADD_EXCEPTION_ATTACHMENT: bool = True
    ADD_EXCEPTION_BLOCKS: bool = False
    ATTACHMENT_COLORS: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_ATTACHMENT_COLORS))
    ATTACHMENT_FOOTER: str | None = None
    ATTACHMENT_FOOTER_ICON: str | None = None
    TRACEBACK_LIMIT: int = Field(default=2900, ge=100)

    # Sink's own logging
    LOG_RENDERER: Literal["console", "json"] = "console"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("MINIMUM_LEVEL", mode="before")
    @classmethod
    def _parse_level(cls, value):
        return LogLevel.parse(value)

    @field_validator("ATTACHMENT_COLORS", mode="after")
    @classmethod
    def _merge_colors(cls, value: dict[str, str]) -> dict[str, str]:
        # partial overrides keep the defaults for unlisted levels
        return {**DEFAULT_ATTACHMENT_COLORS, **{k.lower(): v for k, v in value.items()}}

    def color_for(self, level: LogLevel) -> str:
        return self.ATTACHMENT_COLORS.get(level.name.lower(), "#c0c0c0")


settings = SinkSettings()
