"""
Process-wide on/off switch for delivery.

Written from any thread (an operator, a control endpoint), read by the
batch-processing path once per batch.
"""

import threading
from enum import Enum

import structlog

logger = structlog.get_logger()


class ActivationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ActivationSwitch:
    def __init__(self, status: ActivationStatus = ActivationStatus.ACTIVE):
        self._status = status
        self._lock = threading.Lock()

    @property
    def status(self) -> ActivationStatus:
        with self._lock:
            return self._status

    def is_active(self) -> bool:
        return self.status is ActivationStatus.ACTIVE

    def set_active(self):
        self._set(ActivationStatus.ACTIVE)

    def set_inactive(self):
        self._set(ActivationStatus.INACTIVE)

    def _set(self, status: ActivationStatus):
        with self._lock:
            changed = self._status is not status
            self._status = status
        if changed:
            logger.info("sink.activation_changed", status=status.value)
