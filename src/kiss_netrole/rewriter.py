"""
Config rewrite engine: apply a migration plan across all role artifacts

Steps run strictly in order, each inside its own owner-write scope:

1. naming rule:      demoted address -> promoted address
2. disabled profile: rename to the demoted name, then
                     ethernet -> wifi, promoted name/address -> demoted
3. enabled profile:  wifi -> ethernet, demoted name/address -> promoted

Nothing is backed up and nothing is rolled back. A failure after the first
mutation leaves the artifacts inconsistent and is reported as
PartialFailureError.
"""

import logging
import os
import re
import stat
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from .config import ArtifactPaths, Role
from .errors import (
    ArtifactConflictError,
    ArtifactMalformedError,
    ArtifactMissingError,
    NetRoleError,
    PartialFailureError,
    PermissionDeniedError,
)
from .planner import MigrationPlan

logger = logging.getLogger(__name__)

STEP_NAMING_RULE = "naming-rule"
STEP_DISABLED_PROFILE = "disabled-profile"
STEP_ENABLED_PROFILE = "enabled-profile"


class ApplyStatus(Enum):
    """Outcome of RewriteEngine.apply()"""
    APPLIED = "applied"
    SKIPPED = "skipped"
    DRY_RUN = "dry-run"


@dataclass(slots=True)
class ApplyResult:
    status: ApplyStatus
    completed_steps: list[str] = field(default_factory=list)
    touched: list[Path] = field(default_factory=list)
    reason: str = ""

    @property
    def applied(self) -> bool:
        return self.status is ApplyStatus.APPLIED


@dataclass(frozen=True, slots=True)
class Substitution:
    """
    Token-bounded textual replacement.

    A match must not be preceded or followed by a word character or a colon,
    so enp3s0 never matches inside enp3s0f1 and one address never matches
    inside a longer colon-hex string. Hardware addresses match
    case-insensitively and keep the case found in the file.
    """
    old: str
    new: str
    hardware_address: bool = False

    def apply(self, text: str) -> tuple[str, int]:
        flags = re.IGNORECASE if self.hardware_address else 0
        pattern = re.compile(rf"(?<![\w:]){re.escape(self.old)}(?![\w:])", flags)

        def _replacement(match: re.Match[str]) -> str:
            if self.hardware_address and match.group(0).isupper():
                return self.new.upper()
            return self.new

        return pattern.subn(_replacement, text)


@contextmanager
def owner_writable(path: Path) -> Iterator[Path]:
    """
    Grant owner-write on a file for the duration of the block.

    The original permission bits are restored on exit whether or not the
    block raised.

    Raises:
        PermissionDeniedError: If owner-write cannot be acquired or the
            original mode cannot be restored
    """
    try:
        original = stat.S_IMODE(path.stat().st_mode)
        os.chmod(path, original | stat.S_IWUSR)
    except OSError as e:
        raise PermissionDeniedError(f"Cannot acquire owner-write on {path}: {e}", path) from e

    logger.debug(f"Acquired owner-write on {path} (mode {original:o})")
    try:
        yield path
    finally:
        try:
            os.chmod(path, original)
        except OSError as e:
            logger.error(f"[FAIL] Could not restore mode {original:o} on {path}: {e}")
            raise PermissionDeniedError(f"Cannot restore mode on {path}: {e}", path) from e
        logger.debug(f"Restored mode {original:o} on {path}")


class RewriteEngine:
    """
    Applies a MigrationPlan to the artifacts named by ArtifactPaths.

    Attributes:
        paths: Artifact locations
        dry_run: Log planned substitutions and renames without writing
        written: Artifacts written or renamed by the last apply()
    """

    def __init__(self, paths: ArtifactPaths, dry_run: bool = False):
        self.paths = paths
        self.dry_run = dry_run
        self.written: list[Path] = []

    def apply(self, migration: MigrationPlan) -> ApplyResult:
        """
        Rewrite every artifact for the planned swap.

        If the promoted interface has no disabled profile there is no prior
        migration state to reconcile: nothing is touched and the result is
        SKIPPED.

        Raises:
            ArtifactMissingError: If the naming rule or enabled profile is absent
            ArtifactConflictError: If the renamed disabled profile would
                overwrite an existing one
            PermissionDeniedError: If the first step cannot acquire owner-write
            ArtifactMalformedError: If the first step finds nothing to replace
            PartialFailureError: If any step fails once an artifact was written,
                including a failed mode restore after the write
        """
        source = self.paths.disable_profile(migration.promoted.bound_name)
        destination = self.paths.disable_profile(migration.demoted.bound_name)

        for required in (self.paths.naming_rule, self.paths.enable_profile):
            if not required.exists():
                raise ArtifactMissingError(f"Artifact not found: {required}", required)

        if not source.exists():
            reason = f"no disabled profile {source.name}; no prior migration state to reconcile"
            logger.warning(f"[!] Skipping rewrite: {reason}")
            return ApplyResult(status=ApplyStatus.SKIPPED, reason=reason)

        if destination.exists() and destination != source:
            raise ArtifactConflictError(
                f"Refusing to overwrite existing disabled profile {destination}", destination
            )

        steps: Sequence[tuple[str, Callable[[MigrationPlan], Path]]] = (
            (STEP_NAMING_RULE, self._rewrite_naming_rule),
            (STEP_DISABLED_PROFILE, self._rewrite_disabled_profile),
            (STEP_ENABLED_PROFILE, self._rewrite_enabled_profile),
        )

        result = ApplyResult(status=ApplyStatus.DRY_RUN if self.dry_run else ApplyStatus.APPLIED)
        self.written = []
        for step, action in steps:
            try:
                touched = action(migration)
            except (NetRoleError, OSError) as e:
                if not self.written:
                    logger.error(f"[FAIL] Step {step} failed before any artifact changed: {e}")
                    raise
                logger.error(
                    f"[FAIL] Step {step} failed after {len(self.written)} write(s); "
                    f"artifacts are now inconsistent: {e}"
                )
                raise PartialFailureError(step, result.completed_steps, e) from e

            result.completed_steps.append(step)
            result.touched.append(touched)
            logger.info(f"[OK] {step}: {touched}")

        return result

    def _rewrite_naming_rule(self, migration: MigrationPlan) -> Path:
        return self._rewrite(
            self.paths.naming_rule,
            [
                Substitution(
                    migration.demoted.bound_address,
                    migration.promoted.bound_address,
                    hardware_address=True,
                ),
            ],
        )

    def _rewrite_disabled_profile(self, migration: MigrationPlan) -> Path:
        source = self.paths.disable_profile(migration.promoted.bound_name)
        destination = self.paths.disable_profile(migration.demoted.bound_name)

        if self.dry_run:
            logger.info(f"[DRY-RUN] Would rename {source} -> {destination}")
            target = source
        else:
            logger.info(f"Renaming {source.name} -> {destination.name}")
            source.rename(destination)
            self.written.append(destination)
            target = destination

        self._rewrite(
            target,
            [
                Substitution(Role.PRIMARY.keyword, Role.SECONDARY.keyword),
                Substitution(migration.promoted.bound_name, migration.demoted.bound_name),
                Substitution(
                    migration.promoted.bound_address,
                    migration.demoted.bound_address,
                    hardware_address=True,
                ),
            ],
        )
        return destination

    def _rewrite_enabled_profile(self, migration: MigrationPlan) -> Path:
        return self._rewrite(
            self.paths.enable_profile,
            [
                Substitution(Role.SECONDARY.keyword, Role.PRIMARY.keyword),
                Substitution(migration.demoted.bound_name, migration.promoted.bound_name),
                Substitution(
                    migration.demoted.bound_address,
                    migration.promoted.bound_address,
                    hardware_address=True,
                ),
            ],
        )

    def _rewrite(self, path: Path, substitutions: Sequence[Substitution]) -> Path:
        """
        Apply substitutions to one file in place.

        Raises:
            ArtifactMalformedError: If none of the substitutions matched
        """
        if self.dry_run:
            text = path.read_text()
            _, total = self._substitute(path, text, substitutions)
            if total == 0:
                raise ArtifactMalformedError(f"Nothing to rewrite in {path}", path)
            logger.info(f"[DRY-RUN] Would rewrite {total} occurrence(s) in {path}")
            return path

        with owner_writable(path):
            text = path.read_text()
            updated, total = self._substitute(path, text, substitutions)
            if total == 0:
                raise ArtifactMalformedError(f"Nothing to rewrite in {path}", path)
            path.write_text(updated)
            self.written.append(path)

        logger.debug(f"Rewrote {total} occurrence(s) in {path}")
        return path

    @staticmethod
    def _substitute(
        path: Path,
        text: str,
        substitutions: Sequence[Substitution],
    ) -> tuple[str, int]:
        total = 0
        for substitution in substitutions:
            text, count = substitution.apply(text)
            logger.debug(f"{path.name}: {substitution.old} -> {substitution.new} ({count})")
            total += count
        return text, total


def pending_steps(completed: Optional[Sequence[str]]) -> list[str]:
    """Steps that did not run, for partial-failure reports"""
    order = [STEP_NAMING_RULE, STEP_DISABLED_PROFILE, STEP_ENABLED_PROFILE]
    done = set(completed or ())
    return [step for step in order if step not in done]
