from enum import StrEnum


class SkillErrorKind(StrEnum):
    """Category of a skill error."""

    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    ALREADY_EXISTS = "already_exists"
    UNCONFIGURED = "unconfigured"
    INVALID_REQUEST = "invalid_request"
    STORAGE = "storage"


class SkillError(Exception):
    """Base error for skill operations."""

    kind: SkillErrorKind = SkillErrorKind.INVALID_REQUEST


class SkillNotFoundError(SkillError):
    """Skill not registered or not persisted."""

    kind = SkillErrorKind.NOT_FOUND


class SkillValidationError(SkillError):
    """Skill document is malformed."""

    kind = SkillErrorKind.VALIDATION_FAILED


class SkillAlreadyExistsError(SkillError):
    """A persisted skill with the same slug exists."""

    kind = SkillErrorKind.ALREADY_EXISTS


class SkillStorageUnconfiguredError(SkillError):
    """No skill directory configured."""

    kind = SkillErrorKind.UNCONFIGURED


class InvalidSkillRequestError(SkillError):
    """Request is missing required fields."""

    kind = SkillErrorKind.INVALID_REQUEST


class SkillStorageError(SkillError):
    """Reading or writing skill storage failed."""

    kind = SkillErrorKind.STORAGE
