"""
Role state reader for the persisted role-binding artifacts

Two artifact kinds encode the current role assignment:

- the udev naming rule, which binds the primary adapter's hardware address
  to the logical "master" device name at boot
- NetworkManager keyfile profiles: one enabled profile for the primary
  adapter and one disabled profile per secondary adapter, the latter named
  <prefix><interface><suffix>
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import ArtifactPaths, InterfaceName, RoleBinding, Role, RoleState, normalize_mac
from .errors import ArtifactMalformedError, ArtifactMissingError

logger = logging.getLogger(__name__)

UDEV_ADDRESS = re.compile(r'ATTR\{address\}\s*==\s*"(?P<mac>[^"]+)"')
ANY_MAC = re.compile(r"(?<![0-9A-Fa-f:])[0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5}(?![0-9A-Fa-f:])")


@dataclass
class KeyfileDocument:
    """
    Minimal NetworkManager keyfile (INI-style) document.

    Keeps the raw lines alongside values looked up by section and key.
    A repeated key keeps its last value.
    """
    lines: list[str] = field(default_factory=list)
    values: dict[str, dict[str, str]] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str) -> "KeyfileDocument":
        doc = cls(lines=text.splitlines())
        section: Optional[str] = None
        for raw in doc.lines:
            line = raw.strip()
            if not line or line.startswith(("#", ";")):
                continue
            if line.startswith("[") and line.endswith("]"):
                section = line[1:-1].strip()
                doc.values.setdefault(section, {})
                continue
            if section is None or "=" not in line:
                continue
            key, value = line.split("=", 1)
            doc.values[section][key.strip()] = value.strip()
        return doc

    def get(self, section: str, key: str) -> Optional[str]:
        return self.values.get(section, {}).get(key)

    def find(self, key: str) -> Optional[str]:
        """First value of key in any section, in document order"""
        for entries in self.values.values():
            if key in entries:
                return entries[key]
        return None


def _read_text(path: Path) -> str:
    if not path.exists():
        raise ArtifactMissingError(f"Artifact not found: {path}", path)
    try:
        return path.read_text()
    except OSError as e:
        raise ArtifactMalformedError(f"Artifact unreadable: {path}: {e}", path) from e


def read_naming_rule_address(path: Path) -> str:
    """
    Parse the hardware address bound by the udev naming rule.

    Raises:
        ArtifactMissingError: If the rule file does not exist
        ArtifactMalformedError: If no hardware address can be located
    """
    text = _read_text(path)

    match = UDEV_ADDRESS.search(text)
    candidate = match.group("mac") if match else None
    if candidate is None:
        fallback = ANY_MAC.search(text)
        candidate = fallback.group(0) if fallback else None

    if candidate is None:
        raise ArtifactMalformedError(f"No hardware address in naming rule {path}", path)

    try:
        return normalize_mac(candidate)
    except ValueError as e:
        raise ArtifactMalformedError(f"Naming rule {path}: {e}", path) from e


def _profile_mac(doc: KeyfileDocument) -> Optional[str]:
    connection_type = doc.get("connection", "type")
    value = doc.get(connection_type, "mac-address") if connection_type else None
    if value is None:
        value = doc.find("mac-address")
    if value is None:
        return None
    # older keyfiles terminate list-like values with ';'
    return value.rstrip(";").strip() or None


def read_profile_binding(
    path: Path,
    role: Role,
    name: Optional[InterfaceName] = None,
) -> RoleBinding:
    """
    Parse the interface name and hardware address a profile is bound to.

    Args:
        path: Keyfile path
        role: Role the profile encodes
        name: Interface name to use instead of [connection] interface-name

    Raises:
        ArtifactMissingError: If the profile does not exist
        ArtifactMalformedError: If the name or address cannot be located
    """
    doc = KeyfileDocument.parse(_read_text(path))

    bound_name = name or doc.get("connection", "interface-name")
    if not bound_name:
        raise ArtifactMalformedError(f"No interface-name in profile {path}", path)

    mac = _profile_mac(doc)
    if mac is None:
        raise ArtifactMalformedError(f"No mac-address in profile {path}", path)

    try:
        return RoleBinding(role=role, bound_address=mac, bound_name=bound_name)
    except ValueError as e:
        raise ArtifactMalformedError(f"Profile {path}: {e}", path) from e


def list_disabled_profiles(paths: ArtifactPaths) -> dict[InterfaceName, Path]:
    """Disabled profiles present on disk, by the interface name in their filename"""
    found: dict[InterfaceName, Path] = {}
    if not paths.connections_dir.is_dir():
        return found
    for candidate in sorted(paths.connections_dir.iterdir()):
        name = paths.disabled_profile_name(candidate)
        if name and candidate.is_file():
            found[name] = candidate
    return found


def read_bindings(paths: ArtifactPaths) -> RoleState:
    """
    Load the role bindings currently persisted on disk.

    The primary binding comes from the enabled profile and must agree with
    the address in the naming rule. Each disabled profile contributes one
    secondary binding; disabled profiles without an address are skipped.

    Raises:
        ArtifactMissingError: If the naming rule or enabled profile is absent
        ArtifactMalformedError: If expected content cannot be located, or the
            naming rule and enabled profile refer to different adapters
    """
    rule_address = read_naming_rule_address(paths.naming_rule)
    primary = read_profile_binding(paths.enable_profile, Role.PRIMARY)

    if primary.bound_address != rule_address:
        raise ArtifactMalformedError(
            f"Naming rule binds {rule_address} but enabled profile binds "
            f"{primary.bound_name}/{primary.bound_address}",
            paths.naming_rule,
        )

    secondaries: dict[InterfaceName, RoleBinding] = {}
    for name, profile in list_disabled_profiles(paths).items():
        try:
            secondaries[name] = read_profile_binding(profile, Role.SECONDARY, name=name)
        except ArtifactMalformedError as e:
            logger.warning(f"[!] Ignoring disabled profile: {e}")

    logger.debug(
        f"Role state: primary={primary.bound_name}/{primary.bound_address}, "
        f"secondaries={sorted(secondaries)}"
    )
    return RoleState(primary=primary, secondaries=secondaries)
