"""
Migration planner: decide whether the primary role moves to the wired adapter
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from .config import InterfaceClass, NetworkInterface, Role, RoleBinding, RoleState
from .detectors import last_of_class

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NoOp:
    """No migration this run, with the reason why"""
    reason: str


@dataclass(frozen=True, slots=True)
class MigrationPlan:
    """
    Old to new identity mapping for a primary/secondary swap.

    Attributes:
        promoted: Wired adapter taking the primary role (name, address)
        demoted: Adapter currently bound as primary, moved to secondary
    """
    promoted: RoleBinding
    demoted: RoleBinding

    @property
    def new_primary(self) -> RoleBinding:
        return self.promoted

    @property
    def new_secondary(self) -> RoleBinding:
        return self.demoted

    def describe(self) -> str:
        return (
            f"primary {self.demoted.bound_name}/{self.demoted.bound_address} -> "
            f"{self.promoted.bound_name}/{self.promoted.bound_address}"
        )


def find_trigger(interfaces: Iterable[NetworkInterface]) -> NetworkInterface | NoOp:
    """
    Evaluate the trigger condition without consulting role state.

    A migration is possible only when no wireless interface is present and at
    least one wired interface is. With several candidates of a class the
    last-enumerated one is used.

    Returns:
        The wired interface to promote, or NoOp
    """
    snapshot = list(interfaces)

    wireless = last_of_class(snapshot, InterfaceClass.WIRELESS)
    if wireless is not None:
        return NoOp(f"wireless interface present: {wireless.name}")

    wired = last_of_class(snapshot, InterfaceClass.WIRED)
    if wired is None:
        return NoOp("no wired interface discovered")

    if not wired.mac_address:
        return NoOp(f"wired interface {wired.name} has no hardware address")

    return wired


def plan(interfaces: Iterable[NetworkInterface], current: RoleState) -> MigrationPlan | NoOp:
    """
    Compute the migration for the current inventory and role state.

    Args:
        interfaces: Interface snapshot (consumed once)
        current: Role bindings persisted on disk

    Returns:
        MigrationPlan swapping primary and secondary, or NoOp
    """
    trigger = find_trigger(interfaces)
    if isinstance(trigger, NoOp):
        return trigger

    wired = trigger
    if current.primary.refers_to(wired):
        return NoOp(f"{wired.name} is already primary")

    promoted = RoleBinding(
        role=Role.PRIMARY,
        bound_address=wired.mac_address,
        bound_name=wired.name,
    )
    demoted = RoleBinding(
        role=Role.SECONDARY,
        bound_address=current.primary.bound_address,
        bound_name=current.primary.bound_name,
    )

    if promoted.bound_address == demoted.bound_address:
        return NoOp(f"{wired.name} already holds the primary address {promoted.bound_address}")

    migration = MigrationPlan(promoted=promoted, demoted=demoted)
    logger.info(f"[*] Planned migration: {migration.describe()}")
    return migration


def explain(outcome: Optional[MigrationPlan | NoOp]) -> str:
    """One-line description of a planning outcome"""
    match outcome:
        case MigrationPlan():
            return outcome.describe()
        case NoOp(reason=reason):
            return f"no-op: {reason}"
        case _:
            return "not planned"
