"""Skill tool for LangChain agents.

The tool reads the session key from ``config["configurable"]["session_key"]``.
Its description lists the skills registered when the tool was created, so
hosts create a fresh tool per run, as with any dynamic tool list.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langchain_core.runnables import RunnableConfig  # noqa: TC002
from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from skill_engine.skills.models import SkillRequest
from skill_engine.skills.schema import SKILL_TOOL_NAME

if TYPE_CHECKING:
    from skill_engine.skills.engine import SkillEngine

logger = logging.getLogger(__name__)

SESSION_KEY = "session_key"


class SkillToolInput(BaseModel):
    """Input schema for the skill tool."""

    name: str = Field(default="", description="Skill name/slug.")
    action: str = Field(
        default="",
        description=(
            "catalog, help, load, unload, create, update, delete, "
            "or a skill-specific action."
        ),
    )
    resource: str = Field(default="", description="Resource type (skill-specific).")
    content: str = Field(
        default="",
        description="Full SKILL.md content with YAML frontmatter for create/update.",
    )
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Arguments forwarded to app-backed skills.",
    )


def get_session_key(config: RunnableConfig | None) -> str:
    """Extract the session key from a runnable config."""
    if not config:
        return ""
    return str(config.get("configurable", {}).get(SESSION_KEY) or "")


def create_skill_tool(engine: SkillEngine) -> BaseTool:
    """Create the skill tool bound to an engine.

    Args:
        engine: The SkillEngine handling requests.

    Returns:
        A BaseTool instance named 'skill'.
    """

    def run_skill(
        config: RunnableConfig,
        name: str = "",
        action: str = "",
        resource: str = "",
        content: str = "",
        payload: dict[str, Any] | None = None,
    ) -> str:
        """Dispatch a skill request for the current session."""
        request = SkillRequest(
            name=name,
            action=action,
            resource=resource,
            content=content,
            payload=payload or {},
        )
        result = engine.invoke(get_session_key(config), request)
        if result.is_error:
            return f"Error: {result.content}"
        return result.content

    return StructuredTool.from_function(
        func=run_skill,
        name=SKILL_TOOL_NAME,
        description=engine.description(),
        args_schema=SkillToolInput,
    )
