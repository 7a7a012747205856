"""LLM-facing description and input schema for the skill tool."""

from collections.abc import Sequence
from typing import Any

from skill_engine.skills.models import SkillDefinition

SKILL_TOOL_NAME = "skill"

SKILL_ACTIONS = ("catalog", "help", "load", "unload", "create", "update", "delete")


def build_description(definitions: Sequence[SkillDefinition]) -> str:
    """Build the tool description listing available skills."""
    base = (
        "Unified interface for skills and apps. Skills are not active by default.\n"
        "Invoking a skill or loading it activates it for this conversation; "
        "inactive skills are unloaded automatically after a few turns.\n"
        "Actions: catalog (browse), help (read instructions), "
        "load (activate for session), unload (deactivate), "
        "create/update/delete (manage stored skills), or skill-specific actions."
    )
    if not definitions:
        return base + "\n\nNo skills are currently available."

    lines = ["<available_skills>"]
    for definition in definitions:
        lines.append("  <skill>")
        lines.append(f"    <name>{definition.slug}</name>")
        if definition.description:
            lines.append(
                f"    <description>{definition.description}</description>"
            )
        lines.append("  </skill>")
    lines.append("</available_skills>")

    return base + "\nOnly the skills listed here are available:\n" + "\n".join(lines)


def build_schema(definitions: Sequence[SkillDefinition]) -> dict[str, Any]:
    """Build the JSON schema for the skill tool input."""
    name: dict[str, Any] = {
        "type": "string",
        "description": "Skill name/slug (see list above)",
    }
    slugs = sorted(d.slug for d in definitions)
    if slugs:
        name["enum"] = slugs

    return {
        "type": "object",
        "properties": {
            "name": name,
            "action": {
                "type": "string",
                "description": (
                    "Action: " + ", ".join(SKILL_ACTIONS) + ", or skill-specific"
                ),
            },
            "resource": {
                "type": "string",
                "description": "Resource type (skill-specific)",
            },
            "content": {
                "type": "string",
                "description": (
                    "Full SKILL.md content with YAML frontmatter "
                    "for create/update actions"
                ),
            },
            "payload": {
                "type": "object",
                "description": "Arguments forwarded to app-backed skills",
            },
        },
        "additionalProperties": True,
    }


class SchemaCache:
    """Memoized description and schema, invalidated by registry changes."""

    def __init__(self) -> None:
        """Initialize a stale cache."""
        self.dirty = True
        self.description: str = ""
        self.schema: dict[str, Any] = {}

    def invalidate(self) -> None:
        """Mark the cache stale."""
        self.dirty = True

    def rebuild_locked(self, definitions: Sequence[SkillDefinition]) -> None:
        """Rebuild if stale. Caller holds the exclusive lock."""
        if not self.dirty:
            return
        self.description = build_description(definitions)
        self.schema = build_schema(definitions)
        self.dirty = False
