"""Shared services: logging, configuration, timers, device handles, status."""

from .config_loader import ConfigLoader
from .devices import DeviceHandle, DeviceUnavailableError, MemoryDevice, PropertyResult
from .logging_config import configure_logging
from .logging_utils import StructuredLogger, get_module_logger
from .scheduler import AsyncioScheduler, RepeatingTimer, Scheduler, TimerHandle
from .status import ComponentStatus, StatusSnapshot, resolve_component

__all__ = [
    "AsyncioScheduler",
    "ComponentStatus",
    "ConfigLoader",
    "DeviceHandle",
    "DeviceUnavailableError",
    "MemoryDevice",
    "PropertyResult",
    "RepeatingTimer",
    "Scheduler",
    "StatusSnapshot",
    "StructuredLogger",
    "TimerHandle",
    "configure_logging",
    "get_module_logger",
    "resolve_component",
]
