"""Domain-specific errors for kiss-netrole."""

from pathlib import Path
from typing import Optional, Sequence


class NetRoleError(Exception):
    """Base error for kiss-netrole."""


class InventoryError(NetRoleError):
    """Raised when the OS interface listing cannot be obtained."""


class ArtifactError(NetRoleError):
    """Base error for persisted role-binding artifacts."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class ArtifactMissingError(ArtifactError):
    """Raised when a required artifact does not exist."""


class ArtifactMalformedError(ArtifactError):
    """Raised when expected content cannot be located in an artifact."""


class ArtifactConflictError(ArtifactError):
    """Raised when a rewrite would overwrite an unrelated artifact."""


class PermissionDeniedError(NetRoleError):
    """Raised when owner-write cannot be acquired on an artifact."""

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


class PartialFailureError(NetRoleError):
    """
    Raised when a rewrite step fails after an earlier step already mutated
    artifacts. The artifacts are left inconsistent; nothing is rolled back.
    """

    def __init__(self, failed_step: str, completed_steps: Sequence[str], cause: BaseException):
        completed = ", ".join(completed_steps) or "none"
        super().__init__(
            f"Step '{failed_step}' failed after completed steps [{completed}]: {cause}"
        )
        self.failed_step = failed_step
        self.completed_steps = tuple(completed_steps)
        self.cause = cause


class RestartError(NetRoleError):
    """Raised when the restart command cannot be issued."""
