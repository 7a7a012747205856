"""Poll-based watcher for the skill directory.

Compares a stat fingerprint of every SKILL.md on each poll and invokes the
callback once changes settle for the debounce period.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from skill_engine.skills.store import Fingerprint, SkillStore

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL: float = 2.0
DEFAULT_DEBOUNCE: float = 0.5


class SkillDirWatcher:
    """Watch a skill store for added, edited or removed skill files."""

    def __init__(
        self,
        store: SkillStore,
        on_change: Callable[[], Awaitable[Any]],
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        debounce: float = DEFAULT_DEBOUNCE,
    ) -> None:
        """Initialize the watcher.

        Args:
            store: The store whose directory is polled.
            on_change: Async callback invoked after a change settles.
            poll_interval: Seconds between polls.
            debounce: Seconds a change must stay stable before the callback.
        """
        self._store = store
        self._on_change = on_change
        self._poll_interval = poll_interval
        self._debounce = debounce

        self._task: asyncio.Task[None] | None = None
        self._last: Fingerprint = ()

    def start(self) -> None:
        """Begin watching. Safe to call multiple times."""
        if self._task is not None and not self._task.done():
            return
        self._last = self._store.fingerprint()
        self._task = asyncio.create_task(self._poll_loop(), name="skill-dir-watcher")
        logger.info("skill watcher started: %s", self._store.skill_dir)

    async def stop(self) -> None:
        """Stop watching and await task cleanup."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("skill watcher stopped")

    @property
    def watching(self) -> bool:
        """Whether the poll loop is running."""
        return self._task is not None and not self._task.done()

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)

            current = self._store.fingerprint()
            if current == self._last:
                continue

            await asyncio.sleep(self._debounce)
            settled = self._store.fingerprint()
            if settled != current:
                # still being written; retry on the next poll
                continue

            self._last = settled
            logger.debug("skill directory changed, resyncing")
            try:
                await self._on_change()
            except Exception:
                logger.exception("Error in skill change callback.")
