"""
In-memory interface inventory for tests and offline planning
"""

from typing import Optional, Sequence

from .config import InterfaceName
from .detectors import InterfaceInventory


class InMemoryInterfaceInventory(InterfaceInventory):
    """
    Inventory backed by a fixed list of (name, mac, link) entries.

    Classification goes through the same prefix rules as the OS
    implementation. discover_calls counts how often the "OS" was queried.
    """

    def __init__(
        self,
        entries: Sequence[tuple[InterfaceName, Optional[str], bool]] = (),
        wired_prefixes: Sequence[str] | None = None,
        wireless_prefixes: Sequence[str] | None = None,
    ):
        super().__init__(wired_prefixes, wireless_prefixes)
        self.entries = list(entries)
        self.discover_calls = 0

    def _enumerate(self) -> Sequence[tuple[InterfaceName, bool]]:
        self.discover_calls += 1
        return [(name, link) for name, _, link in self.entries]

    def get_mac_address(self, interface: InterfaceName) -> Optional[str]:
        for name, mac, _ in self.entries:
            if name == interface:
                return mac.lower() if mac else None
        return None
