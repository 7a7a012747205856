from os import getenv
from pathlib import Path

SKILL_ENGINE_CONFIG_DIR = Path(getenv("SKILL_ENGINE_CONFIG_DIR", Path.cwd()))
SKILL_ENGINE_SKILL_DIR = Path(
    getenv("SKILL_ENGINE_SKILL_DIR", str(Path.cwd() / "skills"))
)
