"""
CLI interface for the interface role migrator
"""

import os
import sys
import logging
import argparse
from rich.console import Console
from rich.table import Table
from rich import box

from . import __version__
from .artifacts import read_bindings
from .errors import (
    ArtifactConflictError,
    ArtifactError,
    InventoryError,
    PartialFailureError,
    PermissionDeniedError,
    RestartError,
)
from .factory import InterfaceInventoryFactory
from .migrator import MigrationOutcome, RoleMigrator
from .planner import plan, explain
from .rewriter import pending_steps
from .settings import load_settings, init_config, get_config_paths, Settings


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def create_parser(settings: Settings) -> argparse.ArgumentParser:
    """Create CLI argument parser with defaults from settings."""
    parser = argparse.ArgumentParser(
        prog="kiss-netrole",
        description="Migrate the primary network role to the wired adapter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Reconcile once (normally run from a boot-time unit)
  %(prog)s

  # Show what would change, without writing or restarting
  %(prog)s --dry-run

  # Show interfaces and the persisted role bindings
  %(prog)s --status
        """
    )

    parser.add_argument(
        "--status",
        action="store_true",
        help="Show discovered interfaces, role bindings and the planned migration"
    )

    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Show current configuration and config search paths"
    )

    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Initialize user config file with defaults"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=settings.dry_run,
        help="Show what would be done without making changes"
    )

    parser.add_argument(
        "--no-reboot",
        dest="reboot",
        action="store_false",
        default=settings.reboot,
        help="Rewrite artifacts but do not restart the host"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"kiss-netrole {__version__}"
    )

    return parser


def show_config(settings: Settings) -> None:
    """Display each config layer, whether it applied, and the resolved values."""
    console = Console()
    loaded = set(settings.config_sources)

    layers = Table(title="Config Layers", box=box.SIMPLE)
    layers.add_column("Layer", style="cyan")
    layers.add_column("State")
    for path in get_config_paths():
        if str(path) in loaded:
            state = "[green]loaded[/green]"
        elif path.exists():
            state = "[yellow]present, not loaded[/yellow]"
        else:
            state = "[dim]absent[/dim]"
        layers.add_row(str(path), state)
    for source in settings.config_sources:
        if source.startswith("env:"):
            layers.add_row(source.removeprefix("env:"), "[green]set[/green]")
    console.print(layers)

    values = Table(title="Current Settings", box=box.SIMPLE)
    values.add_column("Setting", style="cyan")
    values.add_column("Value")
    for name, value in settings.as_rows():
        values.add_row(name, value)
    console.print(values)


def show_status(settings: Settings) -> int:
    """Display interfaces, persisted bindings and the planning outcome."""
    console = Console()

    inventory = InterfaceInventoryFactory.create(
        wired_prefixes=settings.wired_prefixes,
        wireless_prefixes=settings.wireless_prefixes,
    )
    interfaces = list(inventory.discover())

    iface_table = Table(title="Interfaces", box=box.SIMPLE)
    iface_table.add_column("Name", style="cyan")
    iface_table.add_column("Class")
    iface_table.add_column("Address")
    iface_table.add_column("Link")
    for iface in interfaces:
        iface_table.add_row(
            iface.name,
            iface.interface_class.value,
            iface.mac_address or "-",
            "[green]up[/green]" if iface.link_present else "[dim]down[/dim]",
        )
    console.print(iface_table)

    try:
        state = read_bindings(settings.artifact_paths())
    except ArtifactError as e:
        console.print(f"[yellow][!] Role state unavailable: {e}[/yellow]")
        return 0

    role_table = Table(title="Role Bindings", box=box.SIMPLE)
    role_table.add_column("Role", style="cyan")
    role_table.add_column("Interface")
    role_table.add_column("Address")
    role_table.add_row(state.primary.role.value, state.primary.bound_name, state.primary.bound_address)
    for binding in state.secondaries.values():
        role_table.add_row(binding.role.value, binding.bound_name, binding.bound_address)
    console.print(role_table)

    console.print(f"Planned: {explain(plan(interfaces, state))}")
    return 0


def main() -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success or no-op, non-zero for errors)
    """
    console = Console()

    settings = load_settings()

    parser = create_parser(settings)
    args = parser.parse_args()

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    if args.init_config:
        config_path = init_config()
        if config_path:
            console.print(f"[green][OK][/green] Config file created: {config_path}")
        else:
            console.print("[yellow]Config file already exists.[/yellow]")
            console.print("Use --show-config to view current settings.")
        return 0

    if args.show_config:
        show_config(settings)
        return 0

    if not InterfaceInventoryFactory.is_supported():
        logger.error("[FAIL] Current platform is not supported")
        logger.error("Supported platforms: Linux")
        return 3

    settings.dry_run = args.dry_run
    settings.reboot = args.reboot

    try:
        if args.status:
            return show_status(settings)

        if not settings.dry_run and os.geteuid() != 0:
            logger.warning("[!] Not running as root; artifact rewrites will likely be denied")

        report = RoleMigrator.from_settings(settings).run()
        if report.outcome is MigrationOutcome.DRY_RUN and report.plan:
            logger.info(f"[DRY-RUN] Would migrate {report.plan.describe()}")
        return 0

    except PartialFailureError as e:
        logger.error(f"[FAIL] {e}")
        logger.error(f"[FAIL] Steps not applied: {', '.join(pending_steps(e.completed_steps))}")
        logger.error("[FAIL] Artifacts are inconsistent; restore them or re-provision the host")
        return 1
    except RestartError as e:
        logger.error(f"[FAIL] {e}")
        return 1
    except (PermissionDeniedError, ArtifactConflictError) as e:
        logger.error(f"[FAIL] {e}")
        return 2
    except (InventoryError, ArtifactError) as e:
        logger.error(f"[FAIL] {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("\n[!] Interrupted")
        return 130
    except Exception as e:
        logger.error(f"[FAIL] Unexpected error: {e}", exc_info=args.verbose)
        return 1


if __name__ == "__main__":
    sys.exit(main())
