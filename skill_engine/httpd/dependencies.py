from fastapi import Request

from skill_engine.skills.engine import SkillEngine


def get_engine(request: Request) -> SkillEngine:
    """Get the SkillEngine attached to the app."""
    return request.app.state.engine
