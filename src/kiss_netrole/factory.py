"""
Factory pattern for creating platform-specific interface inventories
"""

import platform
import logging
from typing import Optional, Sequence

from .config import OSType
from .detectors import InterfaceInventory
from .linux import LinuxInterfaceInventory

logger = logging.getLogger(__name__)


class InterfaceInventoryFactory:
    """
    Factory for creating platform-specific interface inventories.

    Example:
        >>> inventory = InterfaceInventoryFactory.create()
        >>> interfaces = list(inventory.discover())
    """

    @staticmethod
    def create(
        os_type: Optional[OSType] = None,
        wired_prefixes: Sequence[str] | None = None,
        wireless_prefixes: Sequence[str] | None = None,
    ) -> InterfaceInventory:
        """
        Create appropriate inventory for specified or current platform.

        Args:
            os_type: Optional OS type. If None, auto-detect from platform.
            wired_prefixes: Name prefixes classified as wired
            wireless_prefixes: Name prefixes classified as wireless

        Returns:
            Platform-specific InterfaceInventory implementation

        Raises:
            NotImplementedError: If platform is not supported
        """
        if os_type is None:
            os_type = InterfaceInventoryFactory._detect_os()

        match os_type:
            case OSType.LINUX:
                logger.debug("Creating Linux interface inventory")
                return LinuxInterfaceInventory(wired_prefixes, wireless_prefixes)

            case OSType.MACOS:
                raise NotImplementedError(
                    "macOS support not implemented: role artifacts are udev "
                    "and NetworkManager files"
                )

            case OSType.WINDOWS:
                raise NotImplementedError("Windows support not implemented")

            case _:
                raise NotImplementedError(f"OS type {os_type} not supported")

    @staticmethod
    def _detect_os() -> OSType:
        """
        Auto-detect current operating system.

        Raises:
            NotImplementedError: If OS is not recognized
        """
        system = platform.system().lower()

        if system == "darwin":
            return OSType.MACOS
        elif system == "linux":
            return OSType.LINUX
        elif system in ("win32", "windows"):
            return OSType.WINDOWS
        else:
            raise NotImplementedError(
                f"Platform '{system}' not supported. "
                f"Supported platforms: Linux"
            )

    @staticmethod
    def is_supported(os_type: Optional[OSType] = None) -> bool:
        """Check if platform is supported"""
        try:
            if os_type is None:
                os_type = InterfaceInventoryFactory._detect_os()

            return os_type == OSType.LINUX
        except NotImplementedError:
            return False
