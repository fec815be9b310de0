"""Unit tests for PresetStore."""

import asyncio
import json
import logging

import pytest

from av_control.presets.store import PresetStore
from av_control.routing.tolerance import DEFAULT_PRESET


class TestSerialization:
    """JSON shape and stable ordering."""

    def test_dumps_sorted(self):
        store = PresetStore({"devCam02": ["1 1 1"], "devCam01": ["0 0 0"]})
        text = store.dumps()
        assert text.index("devCam01") < text.index("devCam02")
        assert text.endswith("\n")
        assert json.loads(text) == {"devCam01": ["0 0 0"], "devCam02": ["1 1 1"]}

    def test_reserialize_is_stable(self):
        text = '{"b": ["1 2 3"], "a": ["4 5 6", "0 0 0"]}'
        store = PresetStore()
        assert store.loads(text)
        again = PresetStore()
        again.loads(store.dumps())
        assert again.dumps() == store.dumps()

    @pytest.mark.parametrize("text", ["", "[]", '{"cam": "1 2 3"}', "{not json"])
    def test_invalid_keeps_previous(self, text):
        store = PresetStore({"cam": ["1 2 3"]})
        assert not store.loads(text)
        assert store.to_dict() == {"cam": ["1 2 3"]}


class TestAccess:
    """Slot access is 1-based."""

    def test_get(self):
        store = PresetStore({"cam": ["1 2 3", "4 5 6"]})
        assert store.get("cam", 1) == "1 2 3"
        assert store.get("cam", 2) == "4 5 6"
        assert store.get("cam", 0) is None
        assert store.get("cam", 3) is None
        assert store.get("other", 1) is None

    def test_set_pads_with_default(self):
        store = PresetStore()
        assert store.set("cam", 3, "1 1 1") == DEFAULT_PRESET
        assert store.presets("cam") == [DEFAULT_PRESET, DEFAULT_PRESET, "1 1 1"]

    def test_set_returns_previous(self):
        store = PresetStore({"cam": ["1 2 3"]})
        assert store.set("cam", 1, "9 9 9") == "1 2 3"

    def test_set_rejects_zero(self):
        with pytest.raises(IndexError):
            PresetStore().set("cam", 0, "1 1 1")

    def test_ensure_devices(self):
        store = PresetStore({"cam1": ["1 1 1"]})
        created = store.ensure_devices(["cam1", "cam2"], 3)
        assert created == ["cam2"]
        assert store.presets("cam1") == ["1 1 1", DEFAULT_PRESET, DEFAULT_PRESET]
        assert store.presets("cam2") == [DEFAULT_PRESET] * 3

    def test_purge_missing(self):
        store = PresetStore({"cam1": [], "gone": [], "old": []})
        assert store.purge_missing(["cam1"]) == ["gone", "old"]
        assert store.devices() == ["cam1"]


class TestFiles:
    """Sync and aiofiles-backed persistence."""

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "presets.json"
        store = PresetStore({"cam": ["1 2 3"]}, path=path)
        assert store.save()
        loaded = PresetStore(path=path)
        assert loaded.load()
        assert loaded.to_dict() == {"cam": ["1 2 3"]}

    def test_unchanged_store_is_not_rewritten(self, tmp_path):
        path = tmp_path / "presets.json"
        store = PresetStore({"cam": ["1 2 3"]}, path=path)
        assert store.save()
        assert not store.save()
        store.set("cam", 1, "3 2 1")
        assert store.save()

    def test_missing_file(self, tmp_path):
        assert not PresetStore(path=tmp_path / "none.json").load()

    def test_no_path(self):
        with pytest.raises(ValueError):
            PresetStore().save()

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "data" / "presets.json"
        assert PresetStore({"cam": []}, path=path).save()
        assert path.exists()

    @pytest.mark.asyncio
    async def test_async_round_trip(self, tmp_path):
        path = tmp_path / "presets.json"
        store = PresetStore({"cam": ["1 2 3"]}, path=path)
        assert await store.save_async()
        assert not await store.save_async()

        loaded = PresetStore(path=path)
        assert await loaded.load_async()
        assert loaded.get("cam", 1) == "1 2 3"

    @pytest.mark.asyncio
    async def test_async_invalid_file(self, tmp_path):
        path = tmp_path / "presets.json"
        path.write_text("nope")
        assert not await PresetStore(path=path).load_async()

    def test_force_rewrites_unchanged_store(self, tmp_path):
        path = tmp_path / "presets.json"
        path.write_text('{"b": ["1 1 1"], "a": ["2 2 2"]}')
        store = PresetStore(path=path)
        store.load()
        assert not store.save()
        assert store.save(force=True)
        assert path.read_text() == store.dumps()

    @pytest.mark.asyncio
    async def test_overlapping_async_saves_write_latest(self, tmp_path):
        path = tmp_path / "presets.json"
        store = PresetStore({"cam": ["1 2 3"] * 8}, path=path)
        first = asyncio.create_task(store.save_async())
        await asyncio.sleep(0)
        store.purge_missing([])
        store.set("cam", 1, "0 0 0")
        second = asyncio.create_task(store.save_async())
        await asyncio.gather(first, second)
        assert json.loads(path.read_text()) == store.to_dict()


class TestLogger:
    def test_injected_logger(self, tmp_path, caplog):
        store = PresetStore(path=tmp_path / "none.json", logger=logging.getLogger("av_control.room1"))
        with caplog.at_level(logging.INFO, logger="av_control"):
            store.load()
        assert "[room1] No preset file" in caplog.text
