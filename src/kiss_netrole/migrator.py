"""
Role migrator orchestrating inventory, planning, rewrite and restart
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .artifacts import read_bindings
from .config import ArtifactPaths, RoleState
from .detectors import InventoryProvider
from .errors import ArtifactMalformedError, ArtifactMissingError
from .factory import InterfaceInventoryFactory
from .planner import MigrationPlan, NoOp, find_trigger, plan
from .rewriter import ApplyResult, ApplyStatus, RewriteEngine
from .settings import Settings
from .trigger import RestartTrigger

logger = logging.getLogger(__name__)


class MigrationOutcome(Enum):
    """How a reconciliation run ended"""
    NOOP = "no-op"
    NO_STATE = "no-state"
    SKIPPED = "skipped"
    DRY_RUN = "dry-run"
    APPLIED = "applied"
    RESTARTING = "restarting"


@dataclass(slots=True)
class MigrationReport:
    outcome: MigrationOutcome
    reason: str = ""
    plan: Optional[MigrationPlan] = None
    state: Optional[RoleState] = None
    result: Optional[ApplyResult] = None


class RoleMigrator:
    """
    One-shot reconciliation of the primary interface role.

    Workflow:
    1. Snapshot the interfaces (one OS query)
    2. Check the trigger (no wireless, at least one wired interface)
    3. Read the persisted role bindings
    4. Plan the primary/secondary swap
    5. Rewrite naming rule, disabled profile, enabled profile
    6. Restart the host

    Missing or malformed artifacts end the run as NO_STATE with a logged
    diagnostic. Permission and partial-failure errors propagate to the
    caller unchanged.

    Attributes:
        paths: Artifact locations
        inventory: Interface inventory provider
        engine: Rewrite engine
        trigger: Restart trigger
        reboot: Restart after a successful rewrite
    """

    def __init__(
        self,
        paths: ArtifactPaths,
        inventory: Optional[InventoryProvider] = None,
        engine: Optional[RewriteEngine] = None,
        trigger: Optional[RestartTrigger] = None,
        dry_run: bool = False,
        reboot: bool = True,
    ):
        self.paths = paths
        self.dry_run = dry_run
        self.reboot = reboot
        self.inventory = inventory or InterfaceInventoryFactory.create()
        self.engine = engine or RewriteEngine(paths, dry_run=dry_run)
        self.trigger = trigger or RestartTrigger(dry_run=dry_run)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        inventory: Optional[InventoryProvider] = None,
    ) -> "RoleMigrator":
        """Build a migrator wired to the resolved settings."""
        paths = settings.artifact_paths()
        if inventory is None:
            inventory = InterfaceInventoryFactory.create(
                wired_prefixes=settings.wired_prefixes,
                wireless_prefixes=settings.wireless_prefixes,
            )
        return cls(
            paths,
            inventory=inventory,
            engine=RewriteEngine(paths, dry_run=settings.dry_run),
            trigger=RestartTrigger(settings.reboot_command, dry_run=settings.dry_run),
            dry_run=settings.dry_run,
            reboot=settings.reboot,
        )

    def run(self) -> MigrationReport:
        """
        Execute the reconciliation once.

        Returns:
            MigrationReport describing how the run ended

        Raises:
            PermissionDeniedError: If owner-write cannot be acquired before
                any artifact changed
            ArtifactConflictError: If the disabled profile rename would clobber
                an existing profile
            PartialFailureError: If a rewrite step failed after another succeeded
            RestartError: If the restart command failed
        """
        interfaces = list(self.inventory.discover())
        for iface in interfaces:
            logger.debug(f"Discovered {iface}")

        trigger = find_trigger(interfaces)
        if isinstance(trigger, NoOp):
            logger.info(f"Nothing to do: {trigger.reason}")
            return MigrationReport(MigrationOutcome.NOOP, reason=trigger.reason)

        try:
            state = read_bindings(self.paths)
        except (ArtifactMissingError, ArtifactMalformedError) as e:
            logger.warning(f"[!] No migration possible this run: {e}")
            return MigrationReport(MigrationOutcome.NO_STATE, reason=str(e))

        outcome = plan(interfaces, state)
        if isinstance(outcome, NoOp):
            logger.info(f"Nothing to do: {outcome.reason}")
            return MigrationReport(MigrationOutcome.NOOP, reason=outcome.reason, state=state)

        result = self.engine.apply(outcome)
        report = MigrationReport(MigrationOutcome.SKIPPED, plan=outcome, state=state, result=result)

        match result.status:
            case ApplyStatus.SKIPPED:
                report.reason = result.reason
                return report
            case ApplyStatus.DRY_RUN:
                report.outcome = MigrationOutcome.DRY_RUN
                if self.reboot:
                    logger.info(f"[DRY-RUN] Would restart host: {' '.join(self.trigger.command)}")
                return report

        logger.info(f"[OK] Role migration applied: {outcome.describe()}")
        if not self.reboot:
            logger.warning("[!] Restart disabled; the naming rule takes effect on next boot")
            report.outcome = MigrationOutcome.APPLIED
            return report

        report.outcome = MigrationOutcome.RESTARTING
        self.trigger.apply_and_restart()
        return report
