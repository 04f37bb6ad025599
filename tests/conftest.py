"""
Pytest configuration and shared fixtures
"""

import pytest

from kiss_netrole.config import (
    ArtifactPaths,
    InterfaceClass,
    NetworkInterface,
    Role,
    RoleBinding,
    RoleState,
)
from kiss_netrole.memory import InMemoryInterfaceInventory
from kiss_netrole.planner import MigrationPlan

WLAN_NAME = "wlan0"
WLAN_MAC = "aa:bb:cc:dd:ee:ff"
ETH_NAME = "enp3s0"
ETH_MAC = "11:22:33:44:55:66"

READ_ONLY = 0o444

NAMING_RULE = (
    '# kiss: bind the primary adapter to "master"\n'
    f'SUBSYSTEM=="net", ACTION=="add", ATTR{{address}}=="{WLAN_MAC}", NAME="master"\n'
)

ENABLED_PROFILE = f"""[connection]
id=kiss-enable-master
type=wifi
interface-name={WLAN_NAME}
autoconnect=true

[wifi]
mac-address={WLAN_MAC}
mode=infrastructure
ssid=kiss

[ipv4]
method=auto
"""

DISABLED_PROFILE = f"""[connection]
id=kiss-disable-{ETH_NAME}
type=ethernet
interface-name={ETH_NAME}
autoconnect=false

[ethernet]
mac-address={ETH_MAC}

[ipv4]
method=disabled
"""


def write_artifact(path, content, mode=READ_ONLY):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(mode)
    return path


@pytest.fixture
def artifact_paths(tmp_path) -> ArtifactPaths:
    """Artifact locations under a temporary root (nothing written yet)"""
    rules_dir = tmp_path / "etc/udev/rules.d"
    connections_dir = tmp_path / "etc/NetworkManager/system-connections"
    rules_dir.mkdir(parents=True)
    connections_dir.mkdir(parents=True)
    return ArtifactPaths(
        naming_rule=rules_dir / "70-kiss-net-setup-link-master.rules",
        enable_profile=connections_dir / "10-kiss-enable-master.nmconnection",
        connections_dir=connections_dir,
    )


@pytest.fixture
def wireless_primary_tree(artifact_paths) -> ArtifactPaths:
    """Artifacts with wlan0 primary and a disabled profile for enp3s0"""
    write_artifact(artifact_paths.naming_rule, NAMING_RULE)
    write_artifact(artifact_paths.enable_profile, ENABLED_PROFILE)
    write_artifact(artifact_paths.disable_profile(ETH_NAME), DISABLED_PROFILE)
    return artifact_paths


@pytest.fixture
def tree_without_disabled_profile(artifact_paths) -> ArtifactPaths:
    """Artifacts with wlan0 primary and no disabled profile at all"""
    write_artifact(artifact_paths.naming_rule, NAMING_RULE)
    write_artifact(artifact_paths.enable_profile, ENABLED_PROFILE)
    return artifact_paths


@pytest.fixture
def wired_interface() -> NetworkInterface:
    """Sample wired interface with link"""
    return NetworkInterface(
        name=ETH_NAME,
        interface_class=InterfaceClass.WIRED,
        mac_address=ETH_MAC,
        link_present=True,
    )


@pytest.fixture
def wireless_interface() -> NetworkInterface:
    """Sample wireless interface"""
    return NetworkInterface(
        name=WLAN_NAME,
        interface_class=InterfaceClass.WIRELESS,
        mac_address=WLAN_MAC,
        link_present=True,
    )


@pytest.fixture
def wireless_primary_state() -> RoleState:
    """Role state with wlan0 primary and enp3s0 secondary"""
    return RoleState(
        primary=RoleBinding(Role.PRIMARY, WLAN_MAC, WLAN_NAME),
        secondaries={ETH_NAME: RoleBinding(Role.SECONDARY, ETH_MAC, ETH_NAME)},
    )


@pytest.fixture
def swap_plan() -> MigrationPlan:
    """Plan promoting enp3s0 and demoting wlan0"""
    return MigrationPlan(
        promoted=RoleBinding(Role.PRIMARY, ETH_MAC, ETH_NAME),
        demoted=RoleBinding(Role.SECONDARY, WLAN_MAC, WLAN_NAME),
    )


@pytest.fixture
def wired_only_inventory() -> InMemoryInterfaceInventory:
    """Inventory after the wireless adapter was removed"""
    return InMemoryInterfaceInventory([
        ("lo", "00:00:00:00:00:00", True),
        (ETH_NAME, ETH_MAC, True),
    ])


@pytest.fixture
def mixed_inventory() -> InMemoryInterfaceInventory:
    """Inventory with both a wired and a wireless adapter"""
    return InMemoryInterfaceInventory([
        ("lo", "00:00:00:00:00:00", True),
        (ETH_NAME, ETH_MAC, True),
        ("wlp2s0", WLAN_MAC, True),
    ])
