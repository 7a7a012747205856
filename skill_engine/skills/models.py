"""Skill data models.

Skill documents are SKILL.md files: a YAML frontmatter header (name,
description, triggers, tools, priority, maxTurns) followed by a markdown body.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003
from typing import Any, Protocol, Self, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class SkillMeta(BaseModel):
    """Definition of skills frontmatter."""

    model_config = ConfigDict(
        extra="ignore", populate_by_name=True, coerce_numbers_to_str=True
    )

    name: str = Field(min_length=1, max_length=64)
    description: str = Field(min_length=1, max_length=1024)
    version: str = "1.0.0"
    triggers: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    priority: int = 0
    max_turns: int | None = Field(default=None, ge=0, alias="maxTurns")
    metadata: dict[str, Any] | None = None

    @field_validator("triggers", "tools", "priority", mode="before")
    @classmethod
    def _empty_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Treat a key left blank in YAML (null) as unset."""
        if value is None:
            return cls.model_fields[info.field_name].get_default(
                call_default_factory=True
            )
        return value


class SkillRequest(BaseModel):
    """A skill tool call from the agent loop."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    action: str = ""
    resource: str = ""
    content: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)


class SkillResult(BaseModel):
    """Result of a skill tool call."""

    content: str
    is_error: bool = False

    @classmethod
    def ok(cls, content: str) -> Self:
        """Successful result."""
        return cls(content=content)

    @classmethod
    def error(cls, content: str) -> Self:
        """Error result."""
        return cls(content=content, is_error=True)


@runtime_checkable
class Capability(Protocol):
    """Executable handle behind an app-backed skill."""

    def execute(self, request: SkillRequest) -> SkillResult:
        """Execute the request."""
        ...


@dataclass(frozen=True)
class SkillDefinition:
    """Registry entry for a skill."""

    slug: str
    display_name: str
    description: str
    body: str = ""
    capability: Capability | None = None
    triggers: tuple[str, ...] = ()
    tool_restrictions: tuple[str, ...] = ()
    priority: int = 0
    ttl_override: int | None = None
    source_path: Path | None = None

    @property
    def has_capability(self) -> bool:
        """Whether the skill forwards actions to a capability."""
        return self.capability is not None

    def matches(self, message: str) -> bool:
        """Check if any trigger phrase appears in the message."""
        lowered = message.lower()
        return any(
            trigger and trigger.lower() in lowered for trigger in self.triggers
        )

    @classmethod
    def from_meta(
        cls,
        slug: str,
        meta: SkillMeta,
        body: str,
        *,
        capability: Capability | None = None,
        source_path: Path | None = None,
    ) -> Self:
        """Build a definition from parsed frontmatter."""
        return cls(
            slug=slug,
            display_name=meta.name,
            description=meta.description,
            body=body,
            capability=capability,
            triggers=tuple(meta.triggers),
            tool_restrictions=tuple(meta.tools),
            priority=meta.priority,
            ttl_override=meta.max_turns or None,
            source_path=source_path,
        )


@dataclass
class ActivationRecord:
    """A skill active in one session."""

    slug: str
    last_active_turn: int
    content_snapshot: str
    display_name: str
    tool_restrictions: tuple[str, ...]
    effective_ttl: int
    manual: bool = False

    def expired(self, turn: int) -> bool:
        """Whether inactivity exceeds the TTL at the given turn."""
        return turn - self.last_active_turn > self.effective_ttl


@dataclass
class SessionState:
    """Per-session turn clock and active skills."""

    turn_counter: int = 0
    active: dict[str, ActivationRecord] = field(default_factory=dict)


class SkillHint(BaseModel):
    """A non-active skill whose triggers matched the user message."""

    slug: str
    description: str


class TickResult(BaseModel):
    """Outcome of advancing a session by one user message."""

    turn: int
    hints: list[SkillHint] = Field(default_factory=list)
    expired: list[str] = Field(default_factory=list)
    refreshed: list[str] = Field(default_factory=list)

    def render(self) -> str:
        """Render hints as a markdown block for the system prompt."""
        if not self.hints:
            return ""
        lines = [
            "## Suggested Skills",
            "",
            "These skills look relevant to the user's message. "
            'Use skill(name: "<name>") to read one before relying on it.',
            "",
        ]
        lines.extend(f"- **{h.slug}**: {h.description}" for h in self.hints)
        return "\n".join(lines)
