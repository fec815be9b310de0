"""Test doubles for timers and device handles."""

from .device_mocks import RecordingDevice
from .scheduler_mocks import ManualScheduler, ManualTimerHandle

__all__ = ["ManualScheduler", "ManualTimerHandle", "RecordingDevice"]
