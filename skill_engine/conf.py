"""Configuration models for the skill engine."""

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from skill_engine.env import SKILL_ENGINE_SKILL_DIR


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    fmt: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    def apply(self) -> None:
        """Configure the root logger."""
        logging.basicConfig(level=self.level.upper(), format=self.fmt)


class EngineConfig(BaseModel):
    """Tunables for session tracking and prompt assembly.

    content_budget: max characters of skill content injected per turn.
    default_ttl: turns of inactivity tolerated for invoked or triggered skills.
    manual_ttl: turns of inactivity tolerated for explicitly loaded skills.
    """

    content_budget: int = Field(default=16000, gt=0)
    default_ttl: int = Field(default=4, gt=0)
    manual_ttl: int = Field(default=6, gt=0)
    max_hints: int = Field(default=3, ge=0)

    skill_dir: Path | None = SKILL_ENGINE_SKILL_DIR
    disabled_skills: list[str] = Field(default_factory=list)

    watch_interval: float = Field(default=2.0, gt=0)
    watch_debounce: float = Field(default=0.5, ge=0)

    log: LogConfig = Field(default_factory=LogConfig)


def load_config(config_path: str | Path) -> EngineConfig:
    """Load the configuration from a JSON file."""
    with Path(config_path).open("r") as f:
        return EngineConfig.model_validate_json(f.read())
