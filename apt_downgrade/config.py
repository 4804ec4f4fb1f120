"""Configuration file loader for apt-downgrade.

Settings live in a TOML table named ``[apt-downgrade]``.

Discovery order:

1. Explicit path from ``--config`` or ``APT_DOWNGRADE_CONFIG``
2. ``apt-downgrade.toml`` in the current directory
3. ``config.toml`` in the per-user config directory
   (``~/.config/apt-downgrade/config.toml`` on Linux)

Configuration precedence: defaults < config file < CLI args.

Example (``apt-downgrade.toml``)::

    [apt-downgrade]
    remote_lookup = true
    mirror_url = "http://deb.debian.org/debian"
    suite = "bookworm"
    timeout = 20
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import appdirs

from apt_downgrade.exceptions import ConfigError
from apt_downgrade.utils.logger import get_logger
from apt_downgrade.constants import (
    APP_NAME,
    DEFAULT_MIRROR_URL,
    DEFAULT_REMOTE_LOOKUP,
    DEFAULT_SEARCH_URL,
    DEFAULT_SUITE,
    DEFAULT_TIMEOUT,
)

logger = get_logger("config")

#: Name of the TOML table holding apt-downgrade settings.
SECTION = "apt-downgrade"

#: File name looked up in the current directory.
LOCAL_CONFIG_NAME = "apt-downgrade.toml"


@dataclass
class AptDowngradeConfig:
    """Parsed and validated apt-downgrade configuration.

    Attributes:
        remote_lookup: Consult the mirror pool for versions missing locally.
        mirror_url: Mirror root; only pool links below it are followed.
        search_url: Package search site used to locate pool directories.
        suite: Suite name used on the search site.
        artifact_cache_dir: Where downloaded archives are kept. ``None``
            selects the per-user cache directory.
        timeout: HTTP timeout in seconds.
        source_path: Path to the loaded file, or ``None`` for defaults.
    """

    remote_lookup: bool = DEFAULT_REMOTE_LOOKUP
    mirror_url: str = DEFAULT_MIRROR_URL
    search_url: str = DEFAULT_SEARCH_URL
    suite: str = DEFAULT_SUITE
    artifact_cache_dir: Optional[Path] = None
    timeout: int = DEFAULT_TIMEOUT

    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as a dictionary for debug logging."""
        return {
            "remote_lookup": self.remote_lookup,
            "mirror_url": self.mirror_url,
            "search_url": self.search_url,
            "suite": self.suite,
            "artifact_cache_dir": str(self.artifact_cache_dir) if self.artifact_cache_dir else None,
            "timeout": self.timeout,
        }


def user_config_path() -> Path:
    """Return the per-user configuration file path."""
    return Path(appdirs.user_config_dir(APP_NAME)) / "config.toml"


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    local = Path.cwd() / LOCAL_CONFIG_NAME
    if local.is_file():
        logger.debug("Found %s: %s", LOCAL_CONFIG_NAME, local)
        return local

    user = user_config_path()
    if user.is_file():
        logger.debug("Found user config: %s", user)
        return user

    logger.debug("No configuration file found")
    return None


def load_config(config_path: Optional[Path] = None) -> AptDowngradeConfig:
    """Load and validate apt-downgrade configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`AptDowngradeConfig`.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        return AptDowngradeConfig()

    logger.info("Loading configuration from %s", resolved)
    section = _read_toml(resolved).get(SECTION, {})

    if not section:
        logger.debug("Config file found but no [%s] table, using defaults", SECTION)
        return AptDowngradeConfig(source_path=resolved)

    if not isinstance(section, dict):
        raise ConfigError(
            f"[{SECTION}] must be a table",
            config_path=str(resolved),
        )

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


_STRING_OPTIONS = ("mirror_url", "search_url", "suite")


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> AptDowngradeConfig:
    """Validate the ``[apt-downgrade]`` table.

    Raises:
        ConfigError: Unknown keys or values of the wrong type.
    """
    config = AptDowngradeConfig()

    known = {"remote_lookup", "artifact_cache_dir", "timeout", *_STRING_OPTIONS}
    unknown = set(section.keys()) - known
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    if "remote_lookup" in section:
        val = section["remote_lookup"]
        if not isinstance(val, bool):
            raise ConfigError(
                f"remote_lookup must be a boolean, got {type(val).__name__}",
                config_path=config_path,
                option="remote_lookup",
            )
        config.remote_lookup = val

    for option in _STRING_OPTIONS:
        if option not in section:
            continue
        val = section[option]
        if not isinstance(val, str) or not val.strip():
            raise ConfigError(
                f"{option} must be a non-empty string",
                config_path=config_path,
                option=option,
            )
        setattr(config, option, val.strip())

    if "artifact_cache_dir" in section:
        val = section["artifact_cache_dir"]
        if not isinstance(val, str) or not val.strip():
            raise ConfigError(
                "artifact_cache_dir must be a non-empty string",
                config_path=config_path,
                option="artifact_cache_dir",
            )
        config.artifact_cache_dir = Path(val).expanduser()

    if "timeout" in section:
        val = section["timeout"]
        # bool is an int subclass
        if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
            raise ConfigError(
                f"timeout must be a positive integer, got {val!r}",
                config_path=config_path,
                option="timeout",
            )
        config.timeout = val

    return config
