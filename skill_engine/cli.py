"""Skill Engine CLI."""

import argparse
import sys
from pathlib import Path

from skill_engine.conf import EngineConfig, load_config
from skill_engine.env import SKILL_ENGINE_CONFIG_DIR
from skill_engine.skills.engine import SkillEngine
from skill_engine.skills.errors import SkillValidationError
from skill_engine.skills.registry import SkillRegistry
from skill_engine.skills.store import parse_skill_md, slugify


def setup_argument_parser() -> argparse.ArgumentParser:
    """Setup the argument parser."""
    parser = argparse.ArgumentParser(description="Skill Engine CLI")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="The path to the configuration file.",
        dest="config_path",
    )
    parser.add_argument(
        "--skill-dir",
        type=str,
        default=None,
        help="The directory containing skill folders.",
        dest="skill_dir",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("catalog", help="List stored skills.")
    validate = commands.add_parser("validate", help="Validate a SKILL.md file.")
    validate.add_argument("path", help="The SKILL.md file to validate.")
    return parser


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Load the configuration, applying command line overrides."""
    default_config = SKILL_ENGINE_CONFIG_DIR / "skill_engine.json"
    if args.config_path:
        config = load_config(args.config_path)
    elif default_config.exists():
        config = load_config(default_config)
    else:
        config = EngineConfig()
    if args.skill_dir:
        config = config.model_copy(update={"skill_dir": Path(args.skill_dir)})
    return config


def run_catalog(config: EngineConfig) -> int:
    """Print the catalog of stored skills."""
    engine = SkillEngine(SkillRegistry(), config)
    engine.sync_from_store()
    print(engine.catalog())
    return 0


def run_validate(path: str) -> int:
    """Validate a skill document."""
    try:
        meta, _ = parse_skill_md(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, SkillValidationError) as e:
        print(f"{path}: {e}", file=sys.stderr)
        return 1
    print(f"{path}: ok ({slugify(meta.name)})")
    return 0


def main(argv: list[str] | None = None) -> int:
    """skill_engine CLI entrypoint."""
    args = setup_argument_parser().parse_args(argv)
    config = build_config(args)
    config.log.apply()

    if args.command == "catalog":
        return run_catalog(config)
    return run_validate(args.path)


if __name__ == "__main__":
    sys.exit(main())
