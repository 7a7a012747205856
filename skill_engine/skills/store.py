"""Durable storage for skill documents.

Skills live in ``skill_dir/<slug>/SKILL.md``: YAML frontmatter followed by a
markdown body, e.g.::

    ---
    name: meeting-prep
    description: Prepare briefing notes before a meeting
    triggers:
      - meeting
    tools:
      - calendar
    priority: 5
    maxTurns: 8
    ---

    # Meeting Prep
    ...
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Iterable
from pathlib import Path
from typing import TypeAlias

import frontmatter
import yaml
from pydantic import ValidationError

from skill_engine.skills.errors import (
    InvalidSkillRequestError,
    SkillAlreadyExistsError,
    SkillNotFoundError,
    SkillStorageError,
    SkillStorageUnconfiguredError,
    SkillValidationError,
)
from skill_engine.skills.models import SkillDefinition, SkillMeta
from skill_engine.skills.registry import SkillRegistry

logger = logging.getLogger(__name__)

SKILL_FILE_NAME = "SKILL.md"

_SLUG_INVALID = re.compile(r"[^a-z0-9-]")
_SLUG_DASHES = re.compile(r"-{2,}")

Fingerprint: TypeAlias = tuple[tuple[str, int, int], ...]


def slugify(name: str) -> str:
    """Convert a display name to a URL-safe slug."""
    slug = name.strip().lower().replace(" ", "-").replace("_", "-")
    slug = _SLUG_INVALID.sub("", slug)
    slug = _SLUG_DASHES.sub("-", slug)
    return slug.strip("-")


def parse_skill_md(content: str) -> tuple[SkillMeta, str]:
    """Parse SKILL.md content into frontmatter and body.

    Raises:
        SkillValidationError: missing or malformed frontmatter, or missing
            required fields.
    """
    if not content.startswith("---"):
        raise SkillValidationError("SKILL.md must start with --- (YAML frontmatter)")

    try:
        post = frontmatter.loads(content)
    except yaml.YAMLError as e:
        raise SkillValidationError(f"Failed to parse frontmatter: {e}") from e

    if not post.metadata:
        raise SkillValidationError("SKILL.md frontmatter is empty or not closed")

    try:
        meta = SkillMeta.model_validate(post.metadata)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'frontmatter'}: {err['msg']}"
            for err in e.errors()
        )
        raise SkillValidationError(f"Validation failed: {problems}") from e

    return meta, post.content.strip()


class SkillStore:
    """Create, update, delete and load skills under a skill directory."""

    def __init__(self, skill_dir: Path | None) -> None:
        """Initialize the store.

        Args:
            skill_dir: Directory holding skill folders. None disables
                lifecycle operations.
        """
        self._skill_dir = skill_dir

    @property
    def skill_dir(self) -> Path | None:
        """Return the skill directory path."""
        return self._skill_dir

    @property
    def configured(self) -> bool:
        """Whether a skill directory is configured."""
        return self._skill_dir is not None

    def _require_dir(self, operation: str) -> Path:
        if self._skill_dir is None:
            raise SkillStorageUnconfiguredError(
                f"Skill {operation} not available (no skills directory configured)."
            )
        return self._skill_dir

    def create(self, content: str) -> tuple[SkillMeta, str]:
        """Persist a new skill.

        Returns:
            The parsed frontmatter and the derived slug.
        """
        skill_dir = self._require_dir("creation")
        if not content:
            raise InvalidSkillRequestError(
                "Content is required. Provide valid SKILL.md content "
                "with YAML frontmatter."
            )

        meta, _ = parse_skill_md(content)
        slug = slugify(meta.name)
        if not slug:
            raise SkillValidationError(
                "Could not derive a valid slug from the skill name."
            )

        target = skill_dir / slug / SKILL_FILE_NAME
        if target.exists():
            raise SkillAlreadyExistsError(
                f'Skill "{slug}" already exists. Use action: "update" to modify it.'
            )

        self._write(target, content)
        logger.info("created skill: %s", target)
        return meta, slug

    def update(self, name: str, content: str) -> SkillMeta:
        """Overwrite an existing persisted skill."""
        skill_dir = self._require_dir("update")
        if not name:
            raise InvalidSkillRequestError("Name is required for update.")
        if not content:
            raise InvalidSkillRequestError(
                "Content is required. Provide the full updated SKILL.md content."
            )

        meta, _ = parse_skill_md(content)
        slug = slugify(name)
        if not slug:
            raise SkillValidationError(f'"{name}" is not a valid skill name.')
        target = skill_dir / slug / SKILL_FILE_NAME
        if not target.exists():
            raise SkillNotFoundError(
                f'Skill "{slug}" not found in user skills. '
                "Only user-created skills can be updated."
            )

        self._write(target, content)
        logger.info("updated skill: %s", target)
        return meta

    def delete(self, name: str) -> str:
        """Remove a persisted skill directory.

        Returns:
            The slug that was removed.
        """
        skill_dir = self._require_dir("deletion")
        if not name:
            raise InvalidSkillRequestError("Name is required for delete.")

        slug = slugify(name)
        if not slug:
            raise SkillValidationError(f'"{name}" is not a valid skill name.')
        target = skill_dir / slug
        if not (target / SKILL_FILE_NAME).exists():
            raise SkillNotFoundError(
                f'Skill "{slug}" not found in user skills. '
                "Only user-created skills can be deleted."
            )

        try:
            shutil.rmtree(target)
        except OSError as e:
            raise SkillStorageError(f"Failed to delete skill: {e}") from e
        logger.info("deleted skill: %s", target)
        return slug

    def _write(self, target: Path, content: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            raise SkillStorageError(f"Failed to write {SKILL_FILE_NAME}: {e}") from e

    def _skill_files(self) -> list[Path]:
        skill_dir = self._require_dir("loading")
        if not skill_dir.exists():
            return []
        return sorted(
            p
            for p in skill_dir.rglob("*")
            if p.is_file() and p.name.lower() == SKILL_FILE_NAME.lower()
        )

    def load_all(self) -> list[SkillDefinition]:
        """Load every valid skill document.

        Invalid documents are logged and skipped. A later document with the
        same slug shadows an earlier one.
        """
        result: dict[str, SkillDefinition] = {}
        for path in self._skill_files():
            try:
                meta, body = parse_skill_md(path.read_text(encoding="utf-8"))
            except SkillValidationError as e:
                logger.warning("invalid skill %s: %s", path, e)
                continue
            except (OSError, UnicodeDecodeError):
                logger.exception("Failed to read skill: %s", path)
                continue

            slug = slugify(meta.name)
            if not slug:
                logger.warning("skill %s has no usable slug", path)
                continue
            if slug in result:
                logger.warning(
                    "Found duplicate skill names, will shadow previous skill: %s",
                    slug,
                )
            result[slug] = SkillDefinition.from_meta(
                slug, meta, body, source_path=path
            )

        logger.debug(
            "loaded %s skills under: %s", len(result), self._skill_dir
        )
        return list(result.values())

    def fingerprint(self) -> Fingerprint:
        """Snapshot of (path, mtime, size) for every skill file."""
        if self._skill_dir is None:
            return ()
        entries: list[tuple[str, int, int]] = []
        for path in self._skill_files():
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append((str(path), stat.st_mtime_ns, stat.st_size))
        return tuple(entries)


def sync_registry(
    registry: SkillRegistry,
    definitions: Iterable[SkillDefinition],
    disabled: Iterable[str] = (),
) -> int:
    """Replace instruction-only registry entries with stored definitions.

    Capability-backed entries are kept and are never shadowed by a stored
    definition with the same slug. The caller holds the engine's exclusive
    lock.

    Returns:
        Number of stored definitions registered.
    """
    disabled_slugs = set(disabled)
    registry.unregister_all_without_capability()

    registered = 0
    for definition in definitions:
        if definition.slug in disabled_slugs:
            logger.debug("skip disabled skill: %s", definition.slug)
            continue
        existing = registry.get(definition.slug)
        if existing is not None and existing.has_capability:
            logger.warning(
                "stored skill %s shadows an app skill, ignored", definition.slug
            )
            continue
        registry.register(definition)
        registered += 1

    logger.info("synced %s stored skills", registered)
    return registered
