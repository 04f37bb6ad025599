"""
Data models and type definitions for interface role migration
Python 3.12+ with modern type system
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, TypeAlias

# Python 3.12 type aliases
InterfaceName: TypeAlias = str
MACAddress: TypeAlias = str

MAC_PATTERN = re.compile(r"^[0-9a-fA-F]{2}(:[0-9a-fA-F]{2}){5}$")


def normalize_mac(value: str) -> MACAddress:
    """
    Normalize a colon-hex hardware address to lowercase.

    Raises:
        ValueError: If the value is not a colon-hex MAC address
    """
    candidate = value.strip()
    if not MAC_PATTERN.match(candidate):
        raise ValueError(f"Invalid hardware address: {value!r}")
    return candidate.lower()


class OSType(Enum):
    """Supported operating systems"""
    MACOS = "darwin"
    LINUX = "linux"
    WINDOWS = "win32"


class InterfaceClass(Enum):
    """Physical adapter class derived from the interface name"""
    WIRED = "wired"
    WIRELESS = "wireless"
    OTHER = "other"


class Role(Enum):
    """Role an adapter holds in the persisted configuration"""
    PRIMARY = "primary"
    SECONDARY = "secondary"

    @property
    def keyword(self) -> str:
        """Connection-profile keyword written for this role after a migration"""
        return "ethernet" if self is Role.PRIMARY else "wifi"


@dataclass(slots=True)
class NetworkInterface:
    """
    Represents a discovered network interface.

    Attributes:
        name: Interface name (e.g., enp3s0, wlp2s0)
        interface_class: Wired, wireless or other
        mac_address: Hardware address, if the OS reports one
        link_present: Whether the interface has carrier
    """
    name: InterfaceName
    interface_class: InterfaceClass
    mac_address: Optional[MACAddress] = None
    link_present: bool = False

    def __str__(self) -> str:
        """Human-readable interface representation with status icons"""
        status = "[+]" if self.link_present else "[-]"
        kind = {
            InterfaceClass.WIRED: "[E]",
            InterfaceClass.WIRELESS: "[W]",
        }.get(self.interface_class, "   ")
        mac = self.mac_address or "unknown"
        return f"{status}{kind} {self.name:12} ({mac})"

    @property
    def is_wired(self) -> bool:
        return self.interface_class is InterfaceClass.WIRED

    @property
    def is_wireless(self) -> bool:
        return self.interface_class is InterfaceClass.WIRELESS


@dataclass(frozen=True, slots=True)
class RoleBinding:
    """
    Immutable role assignment as persisted in the artifacts.

    Attributes:
        role: Primary or secondary
        bound_address: Hardware address bound to the role
        bound_name: Interface name bound to the role

    Raises:
        ValueError: If the hardware address is invalid
    """
    role: Role
    bound_address: MACAddress
    bound_name: InterfaceName

    def __post_init__(self) -> None:
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "bound_address", normalize_mac(self.bound_address))
        if not self.bound_name:
            raise ValueError("Role binding requires an interface name")

    def refers_to(self, interface: NetworkInterface) -> bool:
        """Check whether this binding names the given interface and address"""
        if interface.mac_address is None:
            return False
        return (
            self.bound_name == interface.name
            and self.bound_address == interface.mac_address.lower()
        )


@dataclass(slots=True)
class RoleState:
    """
    Role bindings currently persisted on disk.

    Attributes:
        primary: Binding encoded by the naming rule and the enabled profile
        secondaries: Bindings parsed from each disabled profile, by interface name
    """
    primary: RoleBinding
    secondaries: dict[InterfaceName, RoleBinding] = field(default_factory=dict)

    @property
    def secondary(self) -> Optional[RoleBinding]:
        """Last secondary binding by interface name, if any"""
        if not self.secondaries:
            return None
        return self.secondaries[sorted(self.secondaries)[-1]]


@dataclass(frozen=True, slots=True)
class ArtifactPaths:
    """
    Locations of the persisted role-binding artifacts.

    Attributes:
        naming_rule: udev rule binding the primary address to a logical name
        enable_profile: Connection profile always bound to the primary adapter
        connections_dir: Directory holding the per-interface disabled profiles
        disable_prefix: Filename prefix of disabled profiles
        disable_suffix: Filename suffix of disabled profiles
    """
    naming_rule: Path
    enable_profile: Path
    connections_dir: Path
    disable_prefix: str = "20-kiss-disable-"
    disable_suffix: str = ".nmconnection"

    def disable_profile(self, name: InterfaceName) -> Path:
        """Path of the disabled profile for an interface"""
        return self.connections_dir / f"{self.disable_prefix}{name}{self.disable_suffix}"

    def disabled_profile_name(self, path: Path) -> Optional[InterfaceName]:
        """Interface name carried by a disabled profile filename, if it is one"""
        filename = path.name
        if not (filename.startswith(self.disable_prefix) and filename.endswith(self.disable_suffix)):
            return None
        name = filename[len(self.disable_prefix):len(filename) - len(self.disable_suffix)]
        return name or None
