"""Send one test event through the sink using SLACK_SINK_* settings."""

import asyncio
import logging

from slack_sink.config import settings
from slack_sink.core.handler import SlackLogHandler
from slack_sink.core.sink import SlackSink
from slack_sink.logconfig import configure_logging


async def send():
    configure_logging()
    if not settings.WEBHOOK_URL:
        print("SLACK_SINK_WEBHOOK_URL is not set")
        return

    async with SlackSink(settings) as sink:
        log = logging.getLogger("slack_sink_smoke")
        log.setLevel(logging.INFO)
        log.addHandler(SlackLogHandler(sink))

        log.info("Test event from %s", "send_test_event.py", extra={"Attempt": 1})
        try:
            1 / 0
        except ZeroDivisionError:
            log.exception("Test event with an exception")

    stats = sink.stats
    print(f"Delivered: {stats.delivered}, failed: {stats.failed}")


if __name__ == "__main__":
    asyncio.run(send())
