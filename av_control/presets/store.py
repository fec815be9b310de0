"""JSON persistence for camera presets.

The document maps a device name to its ordered list of preset strings
(``"pan tilt zoom"``). Serialization uses sorted keys so that re-saving an
unchanged store produces the same text.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import aiofiles

from av_control.core.logging_utils import LoggerLike, ensure_structured_logger
from av_control.routing.tolerance import DEFAULT_PRESET


class PresetStore:
    """Device name -> list of preset strings, with 1-based slot access."""

    def __init__(
        self,
        data: Optional[Dict[str, List[str]]] = None,
        path: Optional[Path] = None,
        *,
        logger: LoggerLike = None,
    ) -> None:
        self._data: Dict[str, List[str]] = {}
        self.path = Path(path) if path is not None else None
        self._saved_text: Optional[str] = None
        self._logger = ensure_structured_logger(logger, fallback_name=__name__)
        self._lock = asyncio.Lock()
        if data:
            self._data = self._validate(data)

    # ------------------------------------------------------------------
    # Serialization

    @staticmethod
    def _validate(document: Any) -> Dict[str, List[str]]:
        if not isinstance(document, dict):
            raise ValueError("preset document must be an object")
        data: Dict[str, List[str]] = {}
        for device, presets in document.items():
            if not isinstance(presets, list):
                raise ValueError(f"presets for {device!r} must be a list")
            data[str(device)] = [str(value) for value in presets]
        return data

    def dumps(self) -> str:
        return json.dumps(self._data, indent=2, sort_keys=True) + "\n"

    def loads(self, text: str) -> bool:
        """Replace the contents from JSON text; keeps the old data on error."""
        try:
            self._data = self._validate(json.loads(text))
        except (ValueError, TypeError) as exc:
            self._logger.error("Preset data was empty or invalid: %s", exc)
            return False
        self._logger.debug("Loaded presets for %d device(s)", len(self._data))
        return True

    def _resolve(self, path: Optional[Path]) -> Path:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("no preset file path configured")
        return target

    def load(self, path: Optional[Path] = None) -> bool:
        target = self._resolve(path)
        if not target.exists():
            self._logger.info("No preset file at %s; starting empty", target)
            return False
        try:
            text = target.read_text(encoding="utf-8")
        except OSError as exc:
            self._logger.error("Failed to read presets from %s: %s", target, exc)
            return False
        if self.loads(text):
            self._saved_text = self.dumps()
            return True
        return False

    async def load_async(self, path: Optional[Path] = None) -> bool:
        target = self._resolve(path)
        if not await asyncio.to_thread(target.exists):
            self._logger.info("No preset file at %s; starting empty", target)
            return False
        try:
            async with aiofiles.open(target, "r", encoding="utf-8") as fh:
                text = await fh.read()
        except OSError as exc:
            self._logger.error("Failed to read presets from %s: %s", target, exc)
            return False
        if self.loads(text):
            self._saved_text = self.dumps()
            return True
        return False

    def _pending_text(self, force: bool = False) -> Optional[str]:
        text = self.dumps()
        if text == self._saved_text and not force:
            self._logger.debug("No new preset data to save")
            return None
        return text

    def save(self, path: Optional[Path] = None, *, force: bool = False) -> bool:
        """Write the store if it changed since the last load/save (or always with ``force``)."""
        target = self._resolve(path)
        text = self._pending_text(force)
        if text is None:
            return False
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except OSError as exc:
            self._logger.error("Failed to save presets to %s: %s", target, exc)
            return False
        self._saved_text = text
        self._logger.debug("Preset data saved to %s", target)
        return True

    async def save_async(self, path: Optional[Path] = None, *, force: bool = False) -> bool:
        target = self._resolve(path)
        # Text is taken under the lock so overlapping saves land in order.
        async with self._lock:
            text = self._pending_text(force)
            if text is None:
                return False
            try:
                await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
                async with aiofiles.open(target, "w", encoding="utf-8") as fh:
                    await fh.write(text)
            except OSError as exc:
                self._logger.error("Failed to save presets to %s: %s", target, exc)
                return False
            self._saved_text = text
        self._logger.debug("Preset data saved to %s", target)
        return True

    # ------------------------------------------------------------------
    # Access

    def devices(self) -> List[str]:
        return sorted(self._data)

    def presets(self, device: str) -> List[str]:
        return list(self._data.get(device, ()))

    def to_dict(self) -> Dict[str, List[str]]:
        return {device: list(values) for device, values in self._data.items()}

    def get(self, device: str, index: int) -> Optional[str]:
        values = self._data.get(device)
        if values is None or not 1 <= index <= len(values):
            return None
        return values[index - 1]

    def set(self, device: str, index: int, value: str) -> Optional[str]:
        """Store ``value`` in slot ``index``; returns the previous value."""
        if index < 1:
            raise IndexError(f"preset index must be >= 1, got {index}")
        values = self._data.setdefault(device, [])
        while len(values) < index:
            values.append(DEFAULT_PRESET)
        previous = values[index - 1]
        values[index - 1] = value
        return previous

    def ensure_devices(self, devices: Iterable[str], slots: int) -> List[str]:
        """Give every device at least ``slots`` presets; returns devices created."""
        created = []
        for device in devices:
            values = self._data.get(device)
            if values is None:
                self._data[device] = [DEFAULT_PRESET] * slots
                created.append(device)
                self._logger.debug("Initialized presets for %s", device)
            elif len(values) < slots:
                values.extend([DEFAULT_PRESET] * (slots - len(values)))
        return created

    def purge_missing(self, devices: Iterable[str]) -> List[str]:
        """Drop presets for devices not in ``devices``; returns the purged names."""
        present = set(devices)
        purged = sorted(device for device in self._data if device not in present)
        for device in purged:
            del self._data[device]
            self._logger.info("Purged presets for missing device %s", device)
        return purged


__all__ = ["PresetStore"]
