"""Camera preset storage and control."""

from .controller import MOVING_POINT, PTZ_POINT, CameraPresetController
from .store import PresetStore

__all__ = ["CameraPresetController", "MOVING_POINT", "PTZ_POINT", "PresetStore"]
