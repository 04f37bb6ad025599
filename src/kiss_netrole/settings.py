"""
Configuration loading for kiss-netrole

Search order (later overrides earlier):
1. Built-in defaults (the deployed udev/NetworkManager layout)
2. /etc/kiss-netrole/config.toml (system-wide)
3. ~/.config/kiss-netrole/config.toml (user global)
4. ./.kiss-netrole.toml (local directory - adjacent invocation)
5. Environment variables (KISS_NETROLE_*)
6. CLI arguments (highest priority)
"""

from __future__ import annotations

import os
import logging
import shlex
import tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any

from .config import ArtifactPaths


logger = logging.getLogger(__name__)

# Config file names
CONFIG_FILENAME = "config.toml"
LOCAL_CONFIG_FILENAME = ".kiss-netrole.toml"

# Environment variable prefix
ENV_PREFIX = "KISS_NETROLE_"


def get_config_dir() -> Path:
    """Get user config directory (XDG-compliant)."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "kiss-netrole"
    return Path.home() / ".config" / "kiss-netrole"


def get_config_paths() -> list[Path]:
    """
    Return list of config paths to check, in precedence order (lowest first).

    Returns paths that WOULD be checked - caller should verify existence.
    """
    return [
        Path("/etc/kiss-netrole") / CONFIG_FILENAME,
        get_config_dir() / CONFIG_FILENAME,
        Path.cwd() / LOCAL_CONFIG_FILENAME,
    ]


@dataclass
class Settings:
    """
    Merged configuration settings from all sources.

    Attributes represent the final resolved values after merging
    all config files, environment variables, and CLI arguments.
    """
    # Artifact locations
    rules_dir: str = "/etc/udev/rules.d"
    naming_rule: str = "70-kiss-net-setup-link-master.rules"
    connections_dir: str = "/etc/NetworkManager/system-connections"
    enable_profile: str = "10-kiss-enable-master.nmconnection"
    disable_prefix: str = "20-kiss-disable-"
    disable_suffix: str = ".nmconnection"

    # Interface classification
    wired_prefixes: list[str] = field(default_factory=lambda: ["en"])
    wireless_prefixes: list[str] = field(default_factory=lambda: ["wl"])

    # Behavior defaults
    reboot: bool = True
    reboot_command: list[str] = field(default_factory=lambda: ["systemctl", "reboot"])
    dry_run: bool = False

    # Metadata
    config_sources: list[str] = field(default_factory=list)

    def artifact_paths(self) -> ArtifactPaths:
        """Build artifact locations from the resolved settings."""
        return ArtifactPaths(
            naming_rule=Path(self.rules_dir) / self.naming_rule,
            enable_profile=Path(self.connections_dir) / self.enable_profile,
            connections_dir=Path(self.connections_dir),
            disable_prefix=self.disable_prefix,
            disable_suffix=self.disable_suffix,
        )

    def as_rows(self) -> list[tuple[str, str]]:
        """Setting name/value pairs for display."""
        return [
            ("rules_dir", self.rules_dir),
            ("naming_rule", self.naming_rule),
            ("connections_dir", self.connections_dir),
            ("enable_profile", self.enable_profile),
            ("disable_prefix", self.disable_prefix),
            ("disable_suffix", self.disable_suffix),
            ("wired_prefixes", ", ".join(self.wired_prefixes)),
            ("wireless_prefixes", ", ".join(self.wireless_prefixes)),
            ("reboot", str(self.reboot)),
            ("reboot_command", shlex.join(self.reboot_command)),
            ("dry_run", str(self.dry_run)),
        ]


_PATH_KEYS = (
    "rules_dir", "naming_rule", "connections_dir",
    "enable_profile", "disable_prefix", "disable_suffix",
)
_LIST_KEYS = ("wired_prefixes", "wireless_prefixes")
_BOOL_KEYS = ("reboot", "dry_run")


def _string_list(value: Any, key: str) -> list[str] | None:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    logger.warning(f"Ignoring '{key}': expected a string or list of strings")
    return None


def _merge_paths(settings: Settings, data: dict[str, Any]) -> None:
    """Merge [paths] section into settings."""
    paths = data.get("paths", {})
    for key in _PATH_KEYS:
        if key in paths:
            setattr(settings, key, str(paths[key]))


def _merge_interfaces(settings: Settings, data: dict[str, Any]) -> None:
    """Merge [interfaces] section into settings."""
    interfaces = data.get("interfaces", {})
    for key in _LIST_KEYS:
        if key in interfaces:
            value = _string_list(interfaces[key], key)
            if value:
                setattr(settings, key, value)


def _merge_behavior(settings: Settings, data: dict[str, Any]) -> None:
    """Merge [behavior] section into settings."""
    behavior = data.get("behavior", {})
    for key in _BOOL_KEYS:
        if key not in behavior:
            continue
        if isinstance(behavior[key], bool):
            setattr(settings, key, behavior[key])
        else:
            logger.warning(f"Ignoring '{key}': expected true or false")
    if "reboot_command" in behavior:
        value = _string_list(behavior["reboot_command"], "reboot_command")
        if value:
            # a single string is a shell-style command line
            settings.reboot_command = shlex.split(value[0]) if len(value) == 1 else value


def _merge_config(settings: Settings, data: dict[str, Any], source: str) -> None:
    """Merge a config dict into settings."""
    settings.config_sources.append(source)
    _merge_paths(settings, data)
    _merge_interfaces(settings, data)
    _merge_behavior(settings, data)


def _apply_env_overrides(settings: Settings) -> None:
    """Apply environment variable overrides."""
    for attr in _PATH_KEYS:
        env_var = f"{ENV_PREFIX}{attr.upper()}"
        value = os.environ.get(env_var)
        if value:
            setattr(settings, attr, value)
            settings.config_sources.append(f"env:{env_var}")

    for attr in _LIST_KEYS:
        env_var = f"{ENV_PREFIX}{attr.upper()}"
        value = os.environ.get(env_var)
        if value:
            setattr(settings, attr, [part.strip() for part in value.split(",") if part.strip()])
            settings.config_sources.append(f"env:{env_var}")

    for attr in _BOOL_KEYS:
        env_var = f"{ENV_PREFIX}{attr.upper()}"
        value = os.environ.get(env_var)
        if value is not None:
            setattr(settings, attr, value.lower() in ("1", "true", "yes"))
            settings.config_sources.append(f"env:{env_var}")

    env_var = f"{ENV_PREFIX}REBOOT_COMMAND"
    value = os.environ.get(env_var)
    if value:
        settings.reboot_command = shlex.split(value)
        settings.config_sources.append(f"env:{env_var}")


def load_settings() -> Settings:
    """
    Load and merge settings from all config sources.

    Returns:
        Merged Settings object with all values resolved.
    """
    settings = Settings()

    # Load from each config path that exists
    for config_path in get_config_paths():
        if config_path.exists():
            try:
                with open(config_path, "rb") as f:
                    data = tomllib.load(f)
                _merge_config(settings, data, str(config_path))
                logger.debug(f"Loaded config from {config_path}")
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning(f"Failed to load {config_path}: {e}")

    # Apply environment overrides
    _apply_env_overrides(settings)

    return settings


def ensure_config_dir() -> Path:
    """Ensure user config directory exists and return its path."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_default_config_content() -> str:
    """Return default config file content as a string."""
    return '''# kiss-netrole - primary interface role migration
# Place this file at: /etc/kiss-netrole/config.toml
# Or use a local override: ./.kiss-netrole.toml

[paths]
rules_dir = "/etc/udev/rules.d"
naming_rule = "70-kiss-net-setup-link-master.rules"
connections_dir = "/etc/NetworkManager/system-connections"
enable_profile = "10-kiss-enable-master.nmconnection"
disable_prefix = "20-kiss-disable-"
disable_suffix = ".nmconnection"

# Interface name prefixes used to classify adapters
[interfaces]
wired_prefixes = ["en"]
wireless_prefixes = ["wl"]

[behavior]
reboot = true
reboot_command = ["systemctl", "reboot"]
dry_run = false
'''


def init_config(force: bool = False) -> Path | None:
    """
    Initialize user config file with defaults.

    Args:
        force: If True, overwrite existing config.

    Returns:
        Path to created config file, or None if it already exists and force=False.
    """
    config_dir = ensure_config_dir()
    config_path = config_dir / CONFIG_FILENAME

    if config_path.exists() and not force:
        return None

    config_path.write_text(get_default_config_content())
    return config_path
