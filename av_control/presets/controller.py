"""
Camera preset controller.

Implements the preset actions behind the RoutingEngine's preset buttons for
a set of PTZ cameras: recall writes a stored position to the selected
camera, save captures the live position and persists it, and match feedback
reports which stored presets the camera currently sits on.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Mapping, Optional, Set

from av_control.core.devices import DeviceHandle, read_bool, unsubscribe_all
from av_control.core.logging_utils import LoggerLike, ensure_structured_logger
from av_control.core.scheduler import Scheduler, TimerHandle
from av_control.core.status import ComponentStatus
from av_control.routing.engine import decode_input
from av_control.routing.tolerance import matches

from .store import PresetStore

PTZ_POINT = "ptz.preset"
MOVING_POINT = "is.moving"

MatchFeedback = Callable[[List[bool]], None]
SavedFeedback = Callable[[int, bool], None]


def camera_role(name: str) -> str:
    return f"camera:{name}"


class CameraPresetController:
    """Recall/save/match for the currently selected camera."""

    def __init__(
        self,
        cameras: Mapping[str, DeviceHandle],
        store: PresetStore,
        scheduler: Scheduler,
        *,
        slots: int = 8,
        tolerance: float = 0.1,
        led_on_time: float = 2.5,
        status: Optional[ComponentStatus] = None,
        on_match: Optional[MatchFeedback] = None,
        on_saved: Optional[SavedFeedback] = None,
        logger: LoggerLike = None,
    ) -> None:
        if slots < 1:
            raise ValueError("slots must be at least 1")
        if tolerance < 0:
            raise ValueError("tolerance must be non-negative")
        self._cameras: Dict[str, DeviceHandle] = dict(cameras)
        self.store = store
        self._scheduler = scheduler
        self.slots = slots
        self.tolerance = tolerance
        self.led_on_time = led_on_time
        self.status = status or ComponentStatus()
        self.on_match = on_match
        self.on_saved = on_saved
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._selected: Optional[str] = None
        self._led_timers: Dict[int, TimerHandle] = {}
        self._saved_leds: Dict[int, bool] = {}
        self._last_matches: List[bool] = [False] * slots
        self._unsubscribers: List[Callable[[], None]] = []
        self._router_unsubscribers: List[Callable[[], None]] = []
        self._pending_saves: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Cameras

    @property
    def camera_names(self) -> List[str]:
        return sorted(self._cameras)

    @property
    def selected_camera(self) -> Optional[str]:
        return self._selected

    @property
    def last_matches(self) -> List[bool]:
        return list(self._last_matches)

    def saved_indicator(self, index: int) -> bool:
        return self._saved_leds.get(index, False)

    def select_camera(self, name: str) -> bool:
        if name not in self._cameras:
            self._logger.warning("Unknown camera %s", name)
            return False
        if name != self._selected:
            self._logger.info("Selected camera %s", name)
        self._selected = name
        self.refresh_matches()
        return True

    def select_camera_index(self, index: int) -> bool:
        """Select by 1-based position in sorted camera order."""
        names = self.camera_names
        if not 1 <= index <= len(names):
            self._logger.debug("Camera index %s out of range (1-%d)", index, len(names))
            return False
        return self.select_camera(names[index - 1])

    def _camera(self) -> Optional[DeviceHandle]:
        if self._selected is None:
            return None
        if not self.status.is_valid(camera_role(self._selected)):
            return None
        return self._cameras.get(self._selected)

    # ------------------------------------------------------------------
    # Lifecycle

    def start(self, default_camera: Optional[str] = None, default_preset: Optional[int] = 1) -> None:
        """Reconcile stored presets with the cameras and apply the defaults."""
        names = self.camera_names
        self.store.purge_missing(names)
        self.store.ensure_devices(names, self.slots)

        for name in names:
            camera = self._cameras[name]
            self._unsubscribers.append(camera.subscribe(PTZ_POINT, self._on_camera_change))
            if MOVING_POINT in camera.points():
                self._unsubscribers.append(camera.subscribe(MOVING_POINT, self._on_camera_change))

        if names:
            if default_camera in self._cameras:
                self.select_camera(default_camera)
            else:
                self._logger.debug("Default camera %s not found; using %s", default_camera, names[0])
                self.select_camera(names[0])
            if default_preset is not None:
                if self.store.get(self._selected, default_preset) is not None:
                    self.recall(default_preset)
                else:
                    self._logger.debug("Default preset %s not available for %s", default_preset, self._selected)

        self._persist()
        self._logger.info("Camera preset controller started with %d camera(s)", len(names))

    def shutdown(self) -> None:
        for timer in self._led_timers.values():
            timer.cancel()
        self._led_timers.clear()
        unsubscribe_all(self._unsubscribers)
        unsubscribe_all(self._router_unsubscribers)
        self._unsubscribers = []
        self._router_unsubscribers = []

    def _on_camera_change(self, _point: str, _value: object) -> None:
        self.refresh_matches()

    # ------------------------------------------------------------------
    # Router following

    def follow_router(self, router: DeviceHandle, output_key: str = "select.1") -> bool:
        """Keep the camera selection on whatever input ``output_key`` routes."""

        def on_route(_point: str, value: object) -> None:
            index = decode_input(value)
            if isinstance(index, int) and index > 0:
                self.select_camera_index(index)
            else:
                self._logger.debug("Router %s reports non-camera input %r", output_key, value)

        current = router.get_property(output_key)
        if not current.ok:
            self._logger.warning("Router %s has no usable %s: %s", router.name, output_key, current.error)
            return False
        self._router_unsubscribers.append(router.subscribe(output_key, on_route))
        on_route(output_key, current.value)
        self._logger.info("Camera selection follows %s.%s", router.name, output_key)
        return True

    # ------------------------------------------------------------------
    # Preset actions

    def recall(self, index: int) -> bool:
        camera = self._camera()
        if camera is None:
            self._logger.debug("Recall %s ignored; no usable camera", index)
            return False
        preset = self.store.get(self._selected, index)
        if preset is None:
            self._logger.debug("No preset %s for %s", index, self._selected)
            return False
        result = camera.set_property(PTZ_POINT, preset)
        if not result.ok:
            self._logger.error("Recall on %s failed: %s", self._selected, result.error)
            self.status.set_invalid(camera_role(self._selected))
            return False
        self._logger.info("Recalled %s preset[%d]: %s", self._selected, index, preset)
        return True

    def save(self, index: int) -> bool:
        camera = self._camera()
        if camera is None:
            self._logger.debug("Save %s ignored; no usable camera", index)
            return False
        if not 1 <= index <= self.slots:
            self._logger.warning("Preset index %s outside 1-%d", index, self.slots)
            return False
        result = camera.get_property(PTZ_POINT)
        if not result.ok:
            self._logger.error("Reading position of %s failed: %s", self._selected, result.error)
            self.status.set_invalid(camera_role(self._selected))
            return False
        live = str(result.value)
        previous = self.store.set(self._selected, index, live)
        self._logger.info("Saved %s preset[%d] from %s to %s", self._selected, index, previous, live)
        self._persist()
        return True

    def hold_reached(self, index: int) -> None:
        """Light the saved indicator for ``led_on_time`` seconds."""
        timer = self._led_timers.pop(index, None)
        if timer is not None:
            timer.cancel()
        self._set_saved_led(index, True)
        self._led_timers[index] = self._scheduler.call_later(self.led_on_time, lambda: self._led_timeout(index))

    def _led_timeout(self, index: int) -> None:
        self._led_timers.pop(index, None)
        self._set_saved_led(index, False)

    def _set_saved_led(self, index: int, lit: bool) -> None:
        self._saved_leds[index] = lit
        if self.on_saved is not None:
            self.on_saved(index, lit)

    def refresh_matches(self) -> List[bool]:
        results = [False] * self.slots
        camera = self._camera()
        if camera is not None:
            current = camera.get_property(PTZ_POINT).value_or("")
            moving = read_bool(camera, MOVING_POINT)
            if current and not moving:
                for slot in range(1, self.slots + 1):
                    saved = self.store.get(self._selected, slot)
                    if saved is not None:
                        results[slot - 1] = matches(str(current), saved, self.tolerance)
        self._last_matches = results
        if self.on_match is not None:
            self.on_match(list(results))
        return results

    # ------------------------------------------------------------------
    # Persistence

    def _persist(self) -> None:
        if self.store.path is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.store.save()
            return
        task = loop.create_task(self.store.save_async(), name="preset-save")
        self._pending_saves.add(task)
        task.add_done_callback(self._save_done)

    def _save_done(self, task: asyncio.Task) -> None:
        self._pending_saves.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("Saving presets failed: %s", exc)

    async def flush(self) -> None:
        """Wait for outstanding background saves."""
        if self._pending_saves:
            await asyncio.gather(*list(self._pending_saves), return_exceptions=True)


__all__ = ["CameraPresetController", "MOVING_POINT", "PTZ_POINT", "camera_role"]
