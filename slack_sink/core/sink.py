"""
Slack sink: batches log events and delivers them to an incoming webhook.

Flow per batch:
1. Check the activation switch (once per batch)
2. Build one message per event with this sink's formatter strategies
3. Post it (single channel) or fan out to every configured channel
4. Await the post(s) before moving to the next event
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass

import httpx
import structlog

from slack_sink.config import SinkSettings
from slack_sink.core.activation import ActivationSwitch
from slack_sink.scheduler.engine import BatchScheduler, PeriodicBatchingScheduler
from slack_sink.schemas.event import DEFAULT_FORMAT_PROVIDER, FormatProvider, LogEvent
from slack_sink.slack.client import SlackClient
from slack_sink.slack.formatter import (
    AttachmentsGenerator,
    BlocksGenerator,
    MessageFormatter,
    TextGenerator,
)

logger = structlog.get_logger()


@dataclass
class SinkStats:
    batches: int = 0
    delivered: int = 0  # successful posts (one per channel on fan-out)
    failed: int = 0
    discarded: int = 0  # events in batches flushed while inactive
    skipped: int = 0  # events whose message could not be built
    dropped: int = 0  # events evicted by a full queue

    def as_dict(self) -> dict:
        return asdict(self)


class SlackSink:
    def __init__(
        self,
        options: SinkSettings,
        format_provider: FormatProvider | None = None,
        activation_switch: ActivationSwitch | None = None,
        http_client: httpx.AsyncClient | None = None,
        generate_text: TextGenerator | None = None,
        generate_attachments: AttachmentsGenerator | None = None,
        generate_blocks: BlocksGenerator | None = None,
        scheduler: BatchScheduler | None = None,
    ):
        self.options = options
        self.activation_switch = activation_switch or ActivationSwitch()
        self.formatter = MessageFormatter(
            options,
            format_provider or DEFAULT_FORMAT_PROVIDER,
            text=generate_text,
            attachments=generate_attachments,
            blocks=generate_blocks,
        )

        self._http = http_client or httpx.AsyncClient()
        self._client = SlackClient(options.WEBHOOK_URL, options.CONNECTION_TIMEOUT, self._http)

        self._scheduler = scheduler or PeriodicBatchingScheduler(
            batch_size_limit=options.BATCH_SIZE_LIMIT,
            period=options.PERIOD,
            queue_limit=options.QUEUE_LIMIT,
        )
        self._scheduler.register_flush_callback(self.emit_batch)
        self._stats = SinkStats()
        self._closed = False

    @property
    def client(self) -> SlackClient:
        return self._client

    @property
    def stats(self) -> SinkStats:
        self._stats.dropped = self._scheduler.dropped_count
        return self._stats

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def emit(self, event: LogEvent):
        """Queue an event for the next batch. Fire and forget, any thread."""
        if event.level < self.options.MINIMUM_LEVEL:
            return
        self._scheduler.enqueue(event)

    # ------------------------------------------------------------------
    # Batch callback
    # ------------------------------------------------------------------

    async def emit_batch(self, events: Iterable[LogEvent]):
        """Deliver one batch, event by event, in enqueue order."""
        events = list(events)
        self._stats.batches += 1

        if not self.activation_switch.is_active():
            self._stats.discarded += len(events)
            logger.debug("sink.batch_discarded", reason="inactive", count=len(events))
            return

        channels = self.options.CHANNELS
        for event in events:
            try:
                message = self.formatter.build(event, channel=self.options.CHANNEL)
            except Exception:
                self._stats.skipped += 1
                logger.exception("sink.format_failed", template=event.message_template[:100])
                continue

            if channels:
                results = await self._client.post_to_channels(message, channels)
            else:
                results = [await self._client.post(message)]

            ok = sum(results)
            self._stats.delivered += ok
            self._stats.failed += len(results) - ok

        logger.debug("sink.batch_emitted", count=len(events))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Start periodic flushing. Must be called from a running event loop."""
        if self._closed:
            raise RuntimeError("Sink is closed")
        self._scheduler.start()
        logger.info("sink.started", fan_out=len(self.options.CHANNELS))

    async def flush(self):
        """Deliver everything queued so far."""
        await self._scheduler.flush()

    async def aclose(self):
        """Final flush, then release the delivery client and the transport.

        Both releases are attempted even if one fails; the first failure propagates.
        """
        if self._closed:
            return
        self._closed = True

        errors: list[Exception] = []
        try:
            await self._scheduler.shutdown()
        finally:
            for name, release in (("client", self._client.aclose), ("transport", self._http.aclose)):
                try:
                    await release()
                except Exception as e:
                    logger.error("sink.release_failed", resource=name, error=str(e))
                    errors.append(e)

        logger.info("sink.closed", **self.stats.as_dict())
        if errors:
            raise errors[0]

    async def __aenter__(self) -> "SlackSink":
        self.start()
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
