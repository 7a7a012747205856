import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import TypeAlias

import pytest

from skill_engine.conf import EngineConfig
from skill_engine.skills.engine import SkillEngine
from skill_engine.skills.models import (
    Capability,
    SkillDefinition,
    SkillRequest,
    SkillResult,
)
from skill_engine.skills.registry import SkillRegistry
from skill_engine.skills.store import SkillStore

SkillFactory: TypeAlias = Callable[..., SkillDefinition]


class EchoCapability:
    """Capability recording every request it receives."""

    def __init__(self) -> None:
        self.requests: list[SkillRequest] = []

    def execute(self, request: SkillRequest) -> SkillResult:
        self.requests.append(request)
        return SkillResult(content=f"echo:{request.action}:{request.payload}")


def make_skill(
    slug: str,
    *,
    body: str | None = None,
    description: str | None = None,
    triggers: tuple[str, ...] = (),
    tools: tuple[str, ...] = (),
    priority: int = 0,
    ttl: int | None = None,
    capability: Capability | None = None,
) -> SkillDefinition:
    """Build a definition with sensible defaults."""
    return SkillDefinition(
        slug=slug,
        display_name=slug.replace("-", " ").title(),
        description=description or f"{slug} skill",
        body=body if body is not None else f"Instructions for {slug}.",
        capability=capability,
        triggers=triggers,
        tool_restrictions=tools,
        priority=priority,
        ttl_override=ttl,
    )


@pytest.fixture
def registry() -> SkillRegistry:
    """An empty registry."""
    return SkillRegistry()


@pytest.fixture
def engine(registry: SkillRegistry) -> SkillEngine:
    """An engine without durable storage."""
    return SkillEngine(registry, EngineConfig(skill_dir=None))


@pytest.fixture
def skill_dir() -> Generator[Path]:
    """A temporary skill directory."""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def stored_engine(skill_dir: Path) -> SkillEngine:
    """An engine backed by a temporary skill directory."""
    config = EngineConfig(skill_dir=skill_dir)
    return SkillEngine(SkillRegistry(), config, SkillStore(skill_dir))


@pytest.fixture
def skill_factory() -> SkillFactory:
    """Factory for skill definitions."""
    return make_skill


@pytest.fixture
def echo_capability() -> EchoCapability:
    """A recording capability."""
    return EchoCapability()
