"""Tests for the skill directory watcher."""

import asyncio
import threading
from pathlib import Path

import pytest

from skill_engine.conf import EngineConfig
from skill_engine.skills.engine import SkillEngine
from skill_engine.skills.registry import SkillRegistry
from skill_engine.skills.store import SkillStore
from skill_engine.skills.watcher import SkillDirWatcher

SKILL = "---\nname: {name}\ndescription: watched\n---\n\nBody."


def _write(skill_dir: Path, name: str) -> None:
    d = skill_dir / name
    d.mkdir(parents=True, exist_ok=True)
    (d / "SKILL.md").write_text(SKILL.format(name=name), encoding="utf-8")


async def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


@pytest.mark.asyncio
async def test_watcher_triggers_on_change(skill_dir: Path) -> None:
    """The callback fires after a skill file appears."""
    calls: list[int] = []

    async def on_change() -> None:
        calls.append(1)

    watcher = SkillDirWatcher(
        SkillStore(skill_dir), on_change, poll_interval=0.02, debounce=0.01
    )
    watcher.start()
    try:
        assert watcher.watching
        await asyncio.sleep(0.05)
        assert calls == []

        _write(skill_dir, "first")
        assert await _wait_for(lambda: len(calls) >= 1)
    finally:
        await watcher.stop()

    assert not watcher.watching


@pytest.mark.asyncio
async def test_callback_errors_do_not_stop_watcher(skill_dir: Path) -> None:
    """A failing callback is logged and polling continues."""
    calls: list[int] = []

    async def on_change() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    watcher = SkillDirWatcher(
        SkillStore(skill_dir), on_change, poll_interval=0.02, debounce=0.01
    )
    watcher.start()
    try:
        _write(skill_dir, "first")
        assert await _wait_for(lambda: len(calls) == 1)
        _write(skill_dir, "second")
        assert await _wait_for(lambda: len(calls) == 2)
        assert watcher.watching
    finally:
        await watcher.stop()


@pytest.mark.asyncio
async def test_engine_watcher_resyncs_registry(skill_dir: Path) -> None:
    """The engine's watcher registers skills written to disk."""
    config = EngineConfig(skill_dir=skill_dir, watch_interval=0.02, watch_debounce=0.01)
    engine = SkillEngine(SkillRegistry(), config)
    watcher = engine.create_watcher()
    watcher.start()
    try:
        _write(skill_dir, "watched-skill")
        assert await _wait_for(lambda: engine.get_skill("watched-skill") is not None)

        (skill_dir / "watched-skill" / "SKILL.md").unlink()
        assert await _wait_for(lambda: engine.get_skill("watched-skill") is None)
    finally:
        await watcher.stop()


@pytest.mark.asyncio
async def test_engine_watcher_syncs_off_event_loop(
    skill_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Storage re-syncs run in a worker thread, not on the event loop."""
    config = EngineConfig(skill_dir=skill_dir, watch_interval=0.02, watch_debounce=0.01)
    engine = SkillEngine(SkillRegistry(), config)
    threads: list[int] = []
    monkeypatch.setattr(
        engine, "sync_from_store", lambda: threads.append(threading.get_ident())
    )
    watcher = engine.create_watcher()
    watcher.start()
    try:
        _write(skill_dir, "watched-skill")
        assert await _wait_for(lambda: len(threads) >= 1)
    finally:
        await watcher.stop()

    assert threading.get_ident() not in threads
