from fastapi import FastAPI

from skill_engine.httpd.routers.skills import skills
from skill_engine.skills.engine import SkillEngine


def create_app(engine: SkillEngine) -> FastAPI:
    """Create the HTTP app serving an engine."""
    app = FastAPI(title="Skill Engine")
    app.state.engine = engine
    app.include_router(skills, prefix="/api/skills")
    return app
