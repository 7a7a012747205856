"""Catalog of known skills."""

import logging
from collections.abc import Callable

from skill_engine.skills.models import SkillDefinition

logger = logging.getLogger(__name__)


class SkillRegistry:
    """Skill catalog keyed by slug.

    The registry does no locking of its own; the owning engine guards every
    access with its shared/exclusive lock.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._entries: dict[str, SkillDefinition] = {}
        self._listeners: list[Callable[[], None]] = []

    def add_listener(self, listener: Callable[[], None]) -> None:
        """Call listener after every mutation."""
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in self._listeners:
            listener()

    def register(self, definition: SkillDefinition) -> None:
        """Add or replace a skill."""
        if definition.slug in self._entries:
            logger.debug("replace skill: %s", definition.slug)
        else:
            logger.debug("register skill: %s", definition.slug)
        self._entries[definition.slug] = definition
        self._changed()

    def unregister(self, slug: str) -> None:
        """Remove a skill if present."""
        if self._entries.pop(slug, None) is not None:
            logger.debug("unregister skill: %s", slug)
        self._changed()

    def unregister_all_without_capability(self) -> None:
        """Remove instruction-only skills, keep capability-backed ones."""
        removed = [s for s, d in self._entries.items() if not d.has_capability]
        for slug in removed:
            del self._entries[slug]
        logger.debug("unregistered %s instruction-only skills", len(removed))
        self._changed()

    def get(self, slug: str) -> SkillDefinition | None:
        """Get a skill by slug."""
        return self._entries.get(slug)

    def list(self) -> list[SkillDefinition]:
        """List all skills sorted by slug."""
        return [self._entries[s] for s in sorted(self._entries)]

    def count(self) -> int:
        """Number of registered skills."""
        return len(self._entries)
