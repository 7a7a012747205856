"""Session-scoped skill invocation, activation tracking and eviction.

One engine owns the skill registry, the per-session activation state and the
tool schema cache, all guarded by a single shared/exclusive lock. Helpers with
a ``_locked`` suffix run inside a critical section and never acquire the lock
themselves.

Per-turn flow for the host runner:

1. ``tick(session_key, message)`` on every user message: advances the turn
   clock, evicts stale skills, re-arms skills the user keeps mentioning and
   returns hints for matching inactive skills.
2. ``invoke(session_key, request)`` whenever the model calls the skill tool.
3. ``active_content`` and ``active_tool_restrictions`` before each model call.
"""

from __future__ import annotations

import asyncio
import copy
import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from skill_engine.conf import EngineConfig
from skill_engine.skills.errors import (
    InvalidSkillRequestError,
    SkillError,
    SkillNotFoundError,
)
from skill_engine.skills.locking import SharedLock
from skill_engine.skills.models import (
    ActivationRecord,
    SessionState,
    SkillDefinition,
    SkillHint,
    SkillRequest,
    SkillResult,
    TickResult,
)
from skill_engine.skills.schema import SchemaCache
from skill_engine.skills.store import SkillStore, sync_registry

if TYPE_CHECKING:
    from skill_engine.skills.registry import SkillRegistry
    from skill_engine.skills.watcher import SkillDirWatcher

logger = logging.getLogger(__name__)

ORCHESTRATION_PREFIX = (
    "This is an orchestration skill. "
    "Follow the guidance below, calling other skills as directed.\n\n"
)


def _fallback_body(definition: SkillDefinition) -> str:
    if definition.body:
        return definition.body
    return f"# {definition.display_name}\n\n{definition.description}"


def _not_found(name: str) -> SkillNotFoundError:
    return SkillNotFoundError(
        f'Skill "{name}" not found. '
        'Use skill(action: "catalog") to see available skills.'
    )


class SkillEngine:
    """Skill catalog plus per-session activation state."""

    def __init__(
        self,
        registry: SkillRegistry,
        config: EngineConfig | None = None,
        store: SkillStore | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            registry: The skill catalog. The engine guards all access to it.
            config: Engine tunables. Defaults to ``EngineConfig()``.
            store: Durable storage for lifecycle actions. Defaults to a store
                on ``config.skill_dir``.
        """
        self._config = config or EngineConfig()
        self._registry = registry
        self._store = store if store is not None else SkillStore(
            self._config.skill_dir
        )
        self._lock = SharedLock()
        self._sessions: dict[str, SessionState] = {}
        self._schema = SchemaCache()
        self._registry.add_listener(self._schema.invalidate)

    # --- Registry ---

    def register(self, definition: SkillDefinition) -> None:
        """Add or replace a skill."""
        with self._lock.exclusive():
            self._registry.register(definition)

    def unregister(self, slug: str) -> None:
        """Remove a skill."""
        with self._lock.exclusive():
            self._registry.unregister(slug)

    def unregister_all_without_capability(self) -> None:
        """Remove every instruction-only skill."""
        with self._lock.exclusive():
            self._registry.unregister_all_without_capability()

    def get_skill(self, slug: str) -> SkillDefinition | None:
        """Get a skill by slug."""
        with self._lock.shared():
            return self._registry.get(slug)

    def list_skills(self) -> list[SkillDefinition]:
        """List all skills sorted by slug."""
        with self._lock.shared():
            return self._registry.list()

    def count(self) -> int:
        """Number of registered skills."""
        with self._lock.shared():
            return self._registry.count()

    def sync_from_store(self) -> int:
        """Reload stored skills into the registry.

        Returns:
            Number of stored skills registered.
        """
        if not self._store.configured:
            logger.debug("no skill dir configured, skip sync")
            return 0
        definitions = self._store.load_all()
        with self._lock.exclusive():
            return sync_registry(
                self._registry, definitions, self._config.disabled_skills
            )

    def create_watcher(self) -> SkillDirWatcher:
        """Create a watcher that re-syncs the registry on storage changes."""
        from skill_engine.skills.watcher import SkillDirWatcher

        async def on_change() -> None:
            await asyncio.to_thread(self.sync_from_store)

        return SkillDirWatcher(
            self._store,
            on_change,
            poll_interval=self._config.watch_interval,
            debounce=self._config.watch_debounce,
        )

    # --- Tool description and schema ---

    def description(self) -> str:
        """Return the cached tool description, rebuilding if stale."""
        with self._lock.shared():
            if not self._schema.dirty:
                return self._schema.description
        with self._lock.exclusive():
            self._schema.rebuild_locked(self._registry.list())
            return self._schema.description

    def schema(self) -> dict[str, Any]:
        """Return a copy of the cached tool input schema, rebuilding if stale."""
        with self._lock.shared():
            if not self._schema.dirty:
                return copy.deepcopy(self._schema.schema)
        with self._lock.exclusive():
            self._schema.rebuild_locked(self._registry.list())
            return copy.deepcopy(self._schema.schema)

    # --- Catalog and dispatch ---

    def catalog(self) -> str:
        """Human-readable listing of all skills."""
        with self._lock.shared():
            definitions = self._registry.list()

        if not definitions:
            return (
                'No skills installed. Use skill(action: "create", content: "...") '
                "to create one."
            )

        app_backed = [d for d in definitions if d.has_capability]
        standalone = [d for d in definitions if not d.has_capability]

        lines = ["# Available Skills", ""]
        if app_backed:
            lines.append("## App Skills")
            lines.extend(f"- **{d.slug}**: {d.description}" for d in app_backed)
            lines.append("")
        if standalone:
            lines.append("## Orchestration Skills")
            lines.extend(f"- **{d.slug}**: {d.description}" for d in standalone)
            lines.append("")
        lines.append(
            'Use `skill(name: "<name>", action: "load")` to activate a skill '
            "for this conversation."
        )
        lines.append(
            'Use `skill(name: "<name>", action: "unload")` when done. '
            "Inactive skills are unloaded automatically."
        )
        return "\n".join(lines)

    def invoke(self, session_key: str, request: SkillRequest) -> SkillResult:
        """Handle a skill tool call.

        Errors never propagate; they come back as error results.
        """
        try:
            return self._dispatch(session_key, request)
        except SkillError as e:
            logger.debug("skill request failed (%s): %s", e.kind, e)
            return SkillResult.error(str(e))

    def _dispatch(self, session_key: str, request: SkillRequest) -> SkillResult:
        match request.action:
            case "catalog":
                return SkillResult.ok(self.catalog())
            case "create":
                return self._create(request)
            case "update":
                return self._update(request)
            case "delete":
                return self._delete(request)
            case "load":
                if not request.name:
                    raise InvalidSkillRequestError("Name is required for load.")
                return self.load(session_key, request.name)
            case "unload":
                if not request.name:
                    raise InvalidSkillRequestError("Name is required for unload.")
                return self.unload(session_key, request.name)

        if not request.name:
            return SkillResult.ok(self.catalog())

        definition = self.get_skill(request.name)
        if definition is None:
            raise _not_found(request.name)

        if session_key:
            self.record_activation(session_key, definition.slug)

        if request.action in ("", "help"):
            if definition.body:
                return SkillResult.ok(definition.body)
            return SkillResult.ok(
                f"# {definition.display_name}\n\n{definition.description}\n\n"
                "No detailed documentation available."
            )

        if definition.capability is None:
            return SkillResult.ok(ORCHESTRATION_PREFIX + _fallback_body(definition))

        try:
            return definition.capability.execute(request)
        except Exception as e:
            logger.exception("skill %s capability failed", definition.slug)
            return SkillResult.error(f"Skill {definition.slug} failed: {e}")

    # --- Lifecycle ---

    def _create(self, request: SkillRequest) -> SkillResult:
        meta, slug = self._store.create(request.content)
        self.sync_from_store()
        return SkillResult.ok(
            f'Skill "{meta.name}" created and available in catalog. '
            f'Use skill(name: "{slug}", action: "load") to activate it '
            "for this conversation."
        )

    def _update(self, request: SkillRequest) -> SkillResult:
        meta = self._store.update(request.name, request.content)
        self.sync_from_store()
        return SkillResult.ok(
            f'Skill "{meta.name}" updated. If it is loaded in this session, '
            "unload and reload it to pick up changes."
        )

    def _delete(self, request: SkillRequest) -> SkillResult:
        slug = self._store.delete(request.name)
        self.sync_from_store()
        return SkillResult.ok(f'Skill "{slug}" deleted successfully.')

    # --- Session tracking ---

    def _session_locked(self, session_key: str) -> SessionState:
        state = self._sessions.get(session_key)
        if state is None:
            state = self._sessions[session_key] = SessionState()
        return state

    def _record_activation_locked(
        self, state: SessionState, definition: SkillDefinition, *, manual: bool
    ) -> ActivationRecord:
        record = state.active.get(definition.slug)
        if record is not None:
            record.last_active_turn = state.turn_counter
            record.manual = record.manual or manual
            return record

        if definition.ttl_override:
            ttl = definition.ttl_override
        elif manual:
            ttl = self._config.manual_ttl
        else:
            ttl = self._config.default_ttl

        record = ActivationRecord(
            slug=definition.slug,
            last_active_turn=state.turn_counter,
            content_snapshot=_fallback_body(definition),
            display_name=definition.display_name,
            tool_restrictions=definition.tool_restrictions,
            effective_ttl=ttl,
            manual=manual,
        )
        state.active[definition.slug] = record
        logger.debug(
            "activate %s at turn %s (ttl=%s, manual=%s)",
            definition.slug,
            state.turn_counter,
            ttl,
            manual,
        )
        return record

    def record_activation(
        self, session_key: str, slug: str, *, manual: bool = False
    ) -> bool:
        """Activate or refresh a skill for a session.

        Acquires the exclusive lock; never call while holding it.

        Returns:
            False if the skill is not registered.
        """
        with self._lock.exclusive():
            definition = self._registry.get(slug)
            if definition is None:
                return False
            state = self._session_locked(session_key)
            self._record_activation_locked(state, definition, manual=manual)
            return True

    def tick(self, session_key: str, message: str) -> TickResult:
        """Advance a session by one user message.

        Phases, in order: advance the turn counter, expire records idle longer
        than their TTL, refresh records whose triggers match the message, and
        collect hints for matching skills that are not active.
        """
        with self._lock.exclusive():
            state = self._session_locked(session_key)
            state.turn_counter += 1
            turn = state.turn_counter

            expired = sorted(
                slug for slug, record in state.active.items() if record.expired(turn)
            )
            for slug in expired:
                del state.active[slug]

            refreshed: list[str] = []
            for slug, record in state.active.items():
                definition = self._registry.get(slug)
                if definition is not None and definition.matches(message):
                    record.last_active_turn = turn
                    refreshed.append(slug)

            # Skills that lapsed this turn but are mentioned again start over.
            for slug in expired:
                definition = self._registry.get(slug)
                if definition is not None and definition.matches(message):
                    self._record_activation_locked(state, definition, manual=False)
                    refreshed.append(slug)

            matches = [
                d
                for d in self._registry.list()
                if d.slug not in state.active and d.matches(message)
            ]
            matches.sort(key=lambda d: (-d.priority, d.slug))
            hints = [
                SkillHint(slug=d.slug, description=d.description)
                for d in matches[: self._config.max_hints]
            ]

        if expired:
            logger.debug("session %s turn %s expired: %s", session_key, turn, expired)
        return TickResult(
            turn=turn,
            hints=hints,
            expired=[s for s in expired if s not in refreshed],
            refreshed=sorted(refreshed),
        )

    def active_content(self, session_key: str) -> str:
        """Serialize active skills for the system prompt.

        Most recently active skills go first. A skill that does not fit the
        remaining budget is left out whole.
        """
        with self._lock.shared():
            state = self._sessions.get(session_key)
            if state is None or not state.active:
                return ""
            records = sorted(
                state.active.values(), key=lambda r: (-r.last_active_turn, r.slug)
            )

        remaining = self._config.content_budget
        sections: list[str] = []
        for record in records:
            size = len(record.content_snapshot)
            if size > remaining:
                logger.debug(
                    "skip %s: %s chars over remaining budget %s",
                    record.slug,
                    size,
                    remaining,
                )
                continue
            sections.append(
                f"## Skill: {record.display_name}\n\n{record.content_snapshot}"
            )
            remaining -= size

        if not sections:
            return ""
        return (
            "## Active Skills\n\n"
            "The following skills are loaded for this conversation. "
            "Follow their instructions.\n\n" + "\n\n---\n\n".join(sections)
        )

    def active_tool_restrictions(self, session_key: str) -> list[str] | None:
        """Union of tool allow-lists across active skills.

        Returns:
            None when no active skill restricts tools.
        """
        with self._lock.shared():
            state = self._sessions.get(session_key)
            if state is None:
                return None
            allowed: set[str] = set()
            for record in state.active.values():
                allowed.update(record.tool_restrictions)
        return sorted(allowed) if allowed else None

    def load(self, session_key: str, slug: str) -> SkillResult:
        """Activate a skill for a session on explicit request."""
        if not session_key:
            return SkillResult.error("No session context available.")
        with self._lock.exclusive():
            definition = self._registry.get(slug)
            if definition is None:
                return SkillResult.error(str(_not_found(slug)))
            state = self._session_locked(session_key)
            self._record_activation_locked(state, definition, manual=True)

        return SkillResult.ok(
            f'Skill "{definition.display_name}" loaded for this conversation. '
            f"Follow the instructions below:\n\n{_fallback_body(definition)}"
        )

    def force_load(self, session_key: str, slug: str) -> bool:
        """Activate a skill without a model request.

        Returns:
            Whether the skill was activated.
        """
        if not session_key:
            return False
        with self._lock.exclusive():
            definition = self._registry.get(slug)
            if definition is None:
                return False
            state = self._session_locked(session_key)
            self._record_activation_locked(state, definition, manual=True)
        logger.info("force loaded %s for session %s", slug, session_key)
        return True

    def unload(self, session_key: str, slug: str) -> SkillResult:
        """Deactivate a skill for a session. Unknown skills are ignored."""
        if not session_key:
            return SkillResult.error("No session context available.")
        with self._lock.exclusive():
            state = self._sessions.get(session_key)
            if state is not None:
                state.active.pop(slug, None)
        return SkillResult.ok(f'Skill "{slug}" unloaded from this conversation.')

    def clear_session(self, session_key: str) -> None:
        """Drop the turn counter and all activations for a session."""
        with self._lock.exclusive():
            self._sessions.pop(session_key, None)

    def session_turn(self, session_key: str) -> int:
        """Current turn of a session, 0 if never ticked."""
        with self._lock.shared():
            state = self._sessions.get(session_key)
            return state.turn_counter if state is not None else 0

    def active_skills(self, session_key: str) -> list[ActivationRecord]:
        """Copies of the active records for a session, sorted by slug."""
        with self._lock.shared():
            state = self._sessions.get(session_key)
            if state is None:
                return []
            return [
                dataclasses.replace(state.active[slug]) for slug in sorted(state.active)
            ]
