"""
Runtime control endpoints for a running sink.

Mount the router on the host application's FastAPI app to switch delivery
on and off, inspect counters, or force a flush.
"""

import structlog
from fastapi import APIRouter
from pydantic import BaseModel

from slack_sink.core.sink import SlackSink

logger = structlog.get_logger()


class SinkStatusOut(BaseModel):
    active: bool
    status: str
    batches: int
    delivered: int
    failed: int
    discarded: int
    skipped: int
    dropped: int


def _status(sink: SlackSink) -> SinkStatusOut:
    switch = sink.activation_switch
    return SinkStatusOut(
        active=switch.is_active(),
        status=switch.status.value,
        **sink.stats.as_dict(),
    )


def create_control_router(sink: SlackSink) -> APIRouter:
    router = APIRouter(prefix="/sink", tags=["sink"])

    @router.get("/status", response_model=SinkStatusOut)
    async def get_status():
        return _status(sink)

    @router.post("/activate", response_model=SinkStatusOut)
    async def activate():
        sink.activation_switch.set_active()
        logger.info("api.sink_activated")
        return _status(sink)

    @router.post("/deactivate", response_model=SinkStatusOut)
    async def deactivate():
        sink.activation_switch.set_inactive()
        logger.info("api.sink_deactivated")
        return _status(sink)

    @router.post("/flush", response_model=SinkStatusOut)
    async def flush():
        """Deliver everything queued so far, then report counters."""
        await sink.flush()
        return _status(sink)

    return router
