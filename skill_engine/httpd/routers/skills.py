import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from skill_engine.httpd.dependencies import get_engine
from skill_engine.httpd.routers.models import DataResult, ResultResponse
from skill_engine.skills.engine import SkillEngine
from skill_engine.skills.models import (
    SkillDefinition,
    SkillRequest,
    SkillResult,
    TickResult,
)

logger = logging.getLogger(__name__)

skills = APIRouter(tags=["skills"])


class SkillInfo(BaseModel):
    """Public view of a registered skill."""

    slug: str
    name: str
    description: str
    triggers: list[str]
    tools: list[str]
    priority: int
    max_turns: int | None
    has_capability: bool
    source_path: str | None = None

    @classmethod
    def from_definition(cls, definition: SkillDefinition) -> "SkillInfo":
        """Build from a registry entry."""
        return cls(
            slug=definition.slug,
            name=definition.display_name,
            description=definition.description,
            triggers=list(definition.triggers),
            tools=list(definition.tool_restrictions),
            priority=definition.priority,
            max_turns=definition.ttl_override,
            has_capability=definition.has_capability,
            source_path=(
                str(definition.source_path) if definition.source_path else None
            ),
        )


class TickRequest(BaseModel):
    """A user message for a session."""

    message: str


class TickResponse(TickResult):
    """Tick outcome with the rendered hint block."""

    prompt: str = ""


class SessionContext(BaseModel):
    """What to inject into the next model call."""

    turn: int
    content: str
    tool_restrictions: list[str] | None = Field(
        default=None, description="Allowed tools, null when unrestricted."
    )
    active: list[str]


@skills.get("/")
async def list_skills(
    engine: SkillEngine = Depends(get_engine),
) -> DataResult[list[SkillInfo]]:
    """List all skills."""
    return DataResult(
        success=True,
        message=None,
        data=[SkillInfo.from_definition(d) for d in engine.list_skills()],
    )


@skills.get("/catalog")
async def catalog(engine: SkillEngine = Depends(get_engine)) -> DataResult[str]:
    """Get the human-readable catalog."""
    return DataResult(success=True, message=None, data=engine.catalog())


@skills.post("/sync")
async def sync(engine: SkillEngine = Depends(get_engine)) -> DataResult[int]:
    """Reload stored skills."""
    return DataResult(success=True, message=None, data=engine.sync_from_store())


@skills.get("/{slug}")
async def get_skill(
    slug: str,
    engine: SkillEngine = Depends(get_engine),
) -> DataResult[str]:
    """Get the full content of a specific skill."""
    definition = engine.get_skill(slug)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Skill {slug!r} not found")
    return DataResult(success=True, message=None, data=definition.body)


@skills.post("/invoke/{session_key}")
async def invoke(
    session_key: str,
    request: SkillRequest,
    engine: SkillEngine = Depends(get_engine),
) -> SkillResult:
    """Dispatch a skill tool call."""
    return engine.invoke(session_key, request)


@skills.post("/sessions/{session_key}/tick")
async def tick(
    session_key: str,
    body: TickRequest,
    engine: SkillEngine = Depends(get_engine),
) -> DataResult[TickResponse]:
    """Advance a session by one user message."""
    result = engine.tick(session_key, body.message)
    return DataResult(
        success=True,
        message=None,
        data=TickResponse(**result.model_dump(), prompt=result.render()),
    )


@skills.get("/sessions/{session_key}/context")
async def context(
    session_key: str,
    engine: SkillEngine = Depends(get_engine),
) -> DataResult[SessionContext]:
    """Active skill content and tool restrictions for a session."""
    return DataResult(
        success=True,
        message=None,
        data=SessionContext(
            turn=engine.session_turn(session_key),
            content=engine.active_content(session_key),
            tool_restrictions=engine.active_tool_restrictions(session_key),
            active=[r.slug for r in engine.active_skills(session_key)],
        ),
    )


@skills.post("/sessions/{session_key}/load/{slug}")
async def load(
    session_key: str,
    slug: str,
    engine: SkillEngine = Depends(get_engine),
) -> DataResult[str]:
    """Load a skill into a session."""
    result = engine.load(session_key, slug)
    if result.is_error:
        raise HTTPException(status_code=404, detail=result.content)
    return DataResult(success=True, message=None, data=result.content)


@skills.delete("/sessions/{session_key}/load/{slug}")
async def unload(
    session_key: str,
    slug: str,
    engine: SkillEngine = Depends(get_engine),
) -> ResultResponse:
    """Unload a skill from a session."""
    result = engine.unload(session_key, slug)
    return ResultResponse(success=not result.is_error, message=result.content)


@skills.delete("/sessions/{session_key}")
async def clear_session(
    session_key: str,
    engine: SkillEngine = Depends(get_engine),
) -> ResultResponse:
    """Drop all state for a session."""
    engine.clear_session(session_key)
    logger.debug("cleared session %s", session_key)
    return ResultResponse(success=True, message=None)
