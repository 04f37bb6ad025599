"""
Abstract base classes and protocols for network interface inventory
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from typing import Optional, Protocol, Sequence

from .config import InterfaceClass, InterfaceName, NetworkInterface


class InventoryProvider(Protocol):
    """
    Protocol for interface inventory (structural subtyping).

    The planner only depends on this surface, so any object with a
    matching discover() can stand in for the OS query.
    """

    def discover(self) -> Iterator[NetworkInterface]: ...


class InterfaceInventory(ABC):
    """
    Abstract base class for platform-specific interface enumeration.

    Subclasses implement _enumerate() for their platform. Classification by
    name prefix is shared across platforms.
    """

    # Naming conventions for predictable interface names (systemd/udev)
    DEFAULT_WIRED_PREFIXES: tuple[str, ...] = ("en",)
    DEFAULT_WIRELESS_PREFIXES: tuple[str, ...] = ("wl",)

    def __init__(
        self,
        wired_prefixes: Sequence[str] | None = None,
        wireless_prefixes: Sequence[str] | None = None,
    ):
        self.wired_prefixes = tuple(wired_prefixes or self.DEFAULT_WIRED_PREFIXES)
        self.wireless_prefixes = tuple(wireless_prefixes or self.DEFAULT_WIRELESS_PREFIXES)

    def discover(self) -> Iterator[NetworkInterface]:
        """
        Snapshot the current interfaces.

        The OS is queried once per call and interfaces are yielded lazily in
        OS enumeration order. The returned iterator cannot be restarted;
        call discover() again for a fresh snapshot.
        """
        for name, link_present in self._enumerate():
            yield NetworkInterface(
                name=name,
                interface_class=self.classify(name),
                mac_address=self.get_mac_address(name),
                link_present=link_present,
            )

    def classify(self, name: InterfaceName) -> InterfaceClass:
        """
        Classify an interface by name prefix.

        Args:
            name: Interface name (e.g., enp3s0, wlp2s0)

        Returns:
            WIRED for the wired prefixes, WIRELESS for the wireless ones,
            OTHER for anything else (lo, docker0, br-*)
        """
        if name.startswith(self.wired_prefixes):
            return InterfaceClass.WIRED
        if name.startswith(self.wireless_prefixes):
            return InterfaceClass.WIRELESS
        return InterfaceClass.OTHER

    @abstractmethod
    def _enumerate(self) -> Sequence[tuple[InterfaceName, bool]]:
        """
        Query the OS for interface names and link state.

        Returns:
            (name, link_present) pairs in OS enumeration order

        Raises:
            InventoryError: If the listing cannot be obtained
        """
        ...

    @abstractmethod
    def get_mac_address(self, interface: InterfaceName) -> Optional[str]:
        """
        Resolve the hardware address of an interface.

        Returns:
            Lowercase colon-hex address, or None if the OS reports none
        """
        ...


def last_of_class(
    interfaces: Iterable[NetworkInterface],
    interface_class: InterfaceClass,
) -> Optional[NetworkInterface]:
    """
    Pick the last-enumerated interface of a class.

    Ties are broken by OS enumeration order, not by name, matching what a
    `tail -n1` over the system listing would select.
    """
    chosen: Optional[NetworkInterface] = None
    for iface in interfaces:
        if iface.interface_class is interface_class:
            chosen = iface
    return chosen
