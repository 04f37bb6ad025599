"""
Linux-specific interface inventory using iproute2 and sysfs
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from .config import InterfaceName, MAC_PATTERN
from .detectors import InterfaceInventory
from .errors import InventoryError

logger = logging.getLogger(__name__)

# "2: enp3s0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 ..."
# "7: veth1a2b@if6: <...>" (peer suffix is not part of the name)
LINK_LINE = re.compile(r"^\d+:\s+(?P<name>[^:@\s]+)(?:@\S+)?:\s+<(?P<flags>[^>]*)>")
ETHER_ADDRESS = re.compile(r"link/ether\s+(?P<mac>[0-9a-fA-F:]{17})")


class LinuxInterfaceInventory(InterfaceInventory):
    """
    Linux interface inventory.

    Detection Strategy:
    1. One `ip -o link show` call enumerates names and link flags
    2. Each interface's address comes from `ip -o link show dev <name>`,
       falling back to /sys/class/net/<name>/address
    """

    SYSFS_NET = Path("/sys/class/net")

    def __init__(
        self,
        wired_prefixes: Sequence[str] | None = None,
        wireless_prefixes: Sequence[str] | None = None,
        timeout: int = 10,
    ):
        super().__init__(wired_prefixes, wireless_prefixes)
        self.timeout = timeout

    def _enumerate(self) -> Sequence[tuple[InterfaceName, bool]]:
        """List interfaces with `ip -o link show`"""
        try:
            result = subprocess.run(
                ["ip", "-o", "link", "show"],
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise InventoryError(f"Interface listing failed: {e}") from e

        links: list[tuple[InterfaceName, bool]] = []
        for line in result.stdout.splitlines():
            match = LINK_LINE.match(line.strip())
            if not match:
                continue
            flags = match.group("flags").split(",")
            links.append((match.group("name"), "LOWER_UP" in flags))

        logger.debug(f"Enumerated interfaces: {[name for name, _ in links]}")
        return links

    def get_mac_address(self, interface: InterfaceName) -> Optional[str]:
        """Get MAC address of interface"""
        try:
            result = subprocess.run(
                ["ip", "-o", "link", "show", "dev", interface],
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout
            )
            match = ETHER_ADDRESS.search(result.stdout)
            if match:
                return match.group("mac").lower()

        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
            logger.debug(f"ip address query failed for {interface}: {e}")

        return self._read_sysfs_address(interface)

    def _read_sysfs_address(self, interface: InterfaceName) -> Optional[str]:
        address_file = self.SYSFS_NET / interface / "address"
        try:
            address = address_file.read_text().strip()
        except OSError:
            return None
        if MAC_PATTERN.match(address):
            return address.lower()
        return None

