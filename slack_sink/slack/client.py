"""
Slack incoming-webhook client.

Handles:
- Single post: one POST per message, success == 2xx
- Channel fan-out: one POST per channel, dispatched together and joined

Transport problems (timeout, refused connection, closed transport, non-2xx)
come back as False and are logged; they never raise to the caller.
"""

import asyncio

import httpx
import structlog

from slack_sink.schemas.message import OutboundMessage

logger = structlog.get_logger()


class SlackClient:
    def __init__(self, webhook_url: str, timeout: float, http: httpx.AsyncClient):
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._http: httpx.AsyncClient | None = http

    @property
    def closed(self) -> bool:
        return self._http is None

    async def post(self, message: OutboundMessage) -> bool:
        """Send one message to the webhook. Returns True on a 2xx response."""
        if self._http is None:
            logger.warning("slack.post_after_close", channel=message.channel)
            return False

        try:
            resp = await self._http.post(
                self._webhook_url,
                json=message.to_payload(),
                timeout=self._timeout,
            )
        except httpx.TimeoutException:
            logger.warning("slack.post_timeout", channel=message.channel, timeout=self._timeout)
            return False
        except (httpx.HTTPError, httpx.InvalidURL, RuntimeError) as e:
            # RuntimeError: the transport was closed under us
            logger.warning("slack.post_failed", channel=message.channel, error=str(e))
            return False

        if not resp.is_success:
            logger.warning(
                "slack.post_rejected",
                channel=message.channel,
                status=resp.status_code,
                detail=resp.text[:200],
            )
            return False

        logger.debug("slack.posted", channel=message.channel)
        return True

    async def post_to_channels(self, message: OutboundMessage, channels: list[str]) -> list[bool]:
        """Post a copy of the message to each channel concurrently; results follow `channels` order."""
        posts = [self.post(message.for_channel(channel)) for channel in channels]
        return list(await asyncio.gather(*posts))

    async def aclose(self):
        """Release the client. The transport itself is owned and closed by the sink."""
        self._http = None
        logger.debug("slack.client_closed")
