"""Skill management module."""

from skill_engine.skills.engine import SkillEngine
from skill_engine.skills.errors import (
    SkillAlreadyExistsError,
    SkillError,
    SkillErrorKind,
    SkillNotFoundError,
    SkillStorageUnconfiguredError,
    SkillValidationError,
)
from skill_engine.skills.models import (
    ActivationRecord,
    Capability,
    SkillDefinition,
    SkillHint,
    SkillMeta,
    SkillRequest,
    SkillResult,
    TickResult,
)
from skill_engine.skills.registry import SkillRegistry
from skill_engine.skills.store import SkillStore, parse_skill_md, slugify
from skill_engine.skills.tools import create_skill_tool

__all__ = [
    "ActivationRecord",
    "Capability",
    "SkillAlreadyExistsError",
    "SkillDefinition",
    "SkillEngine",
    "SkillError",
    "SkillErrorKind",
    "SkillHint",
    "SkillMeta",
    "SkillNotFoundError",
    "SkillRegistry",
    "SkillRequest",
    "SkillResult",
    "SkillStorageUnconfiguredError",
    "SkillStore",
    "SkillValidationError",
    "TickResult",
    "create_skill_tool",
    "parse_skill_md",
    "slugify",
]
