from pathlib import Path


class LiveDiffError(Exception):
    """Base exception for all expected livediff errors."""

    message: str
    exit_code: int

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


class ConfigurationError(LiveDiffError):
    """Configuration related errors (env vars, config files)."""


class PreconditionError(LiveDiffError):
    """An operation was called on a session that is not in the required state."""


class SessionConflictError(PreconditionError):
    """Another session is already editing the same path."""


class OpenFailedError(LiveDiffError):
    """
    Opening a session failed part way through.

    `created_dirs` lists the directories that were created and could not be
    rolled back, in creation order, so they can be cleaned up by hand.
    """

    created_dirs: list[Path]

    def __init__(self, message: str, created_dirs: list[Path], exit_code: int = 1):
        super().__init__(message, exit_code)
        self.created_dirs = created_dirs


class ExternalDependencyError(LiveDiffError):
    """Missing or failing system tools (editor, formatter)."""


class InvalidInputError(LiveDiffError):
    """User input validation errors."""
