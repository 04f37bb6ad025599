"""
Primary Network Role Migration Package
Moves the primary interface role to the wired adapter when wireless is gone

Version 1.0.0 - Python 3.12+ with modern type system
"""

__version__ = "1.0.0"

from .config import (
    ArtifactPaths,
    InterfaceClass,
    NetworkInterface,
    Role,
    RoleBinding,
    RoleState,
)
from .detectors import InterfaceInventory
from .factory import InterfaceInventoryFactory
from .artifacts import read_bindings
from .planner import MigrationPlan, NoOp, plan
from .rewriter import ApplyResult, ApplyStatus, RewriteEngine
from .trigger import RestartTrigger
from .migrator import MigrationOutcome, RoleMigrator
from .settings import Settings, load_settings, init_config

__all__ = [
    "ArtifactPaths",
    "InterfaceClass",
    "NetworkInterface",
    "Role",
    "RoleBinding",
    "RoleState",
    "InterfaceInventory",
    "InterfaceInventoryFactory",
    "read_bindings",
    "MigrationPlan",
    "NoOp",
    "plan",
    "ApplyResult",
    "ApplyStatus",
    "RewriteEngine",
    "RestartTrigger",
    "MigrationOutcome",
    "RoleMigrator",
    "Settings",
    "load_settings",
    "init_config",
]
