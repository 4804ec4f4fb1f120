"""
Centralized constants for apt-downgrade.

This module defines immutable configuration values used across apt-downgrade,
including host tool invocations, remote index locations, network settings,
and logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: Application name used for per-user cache and config directories.
APP_NAME: Final[str] = "apt-downgrade"

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "apt-downgrade/{version}"

# ---------------------------------------------------------------------------
# Architectures
# ---------------------------------------------------------------------------

#: Architecture markers meaning "installable on any host".
ARCH_INDEPENDENT: Final[Sequence[str]] = ("all", "any")

#: Suffix of binary package archives.
DEB_SUFFIX: Final[str] = ".deb"

# ---------------------------------------------------------------------------
# Remote index defaults
# ---------------------------------------------------------------------------

#: Mirror whose pool directories are listed for extra versions.
DEFAULT_MIRROR_URL: Final[str] = "http://ftp.debian.org/debian"

#: Package search site used to map a binary name to its pool directory.
DEFAULT_SEARCH_URL: Final[str] = "https://packages.debian.org"

#: Distribution suite queried on the search site.
DEFAULT_SUITE: Final[str] = "sid"

#: Whether remote pool listings are consulted at all.
DEFAULT_REMOTE_LOOKUP: Final[bool] = True

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed index page requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

#: Chunk size used when streaming artifacts to disk.
DOWNLOAD_CHUNK_SIZE: Final[int] = 64 * 1024

# ---------------------------------------------------------------------------
# Host tools
# ---------------------------------------------------------------------------

#: ``apt-config shell`` variable/key pairs read at startup.
APT_CONFIG_QUERY: Final[Sequence[str]] = (
    "CACHE_ROOT_DIR",
    "Dir::Cache",
    "CACHE_ARCHIVE_SUBDIR",
    "Dir::Cache::archives",
    "ARCH",
    "APT::Architecture",
)

#: Line prefix of the installed version in ``apt-cache policy`` output.
POLICY_INSTALLED_PREFIX: Final[str] = "  Installed: "

#: Value reported by ``apt-cache policy`` when nothing is installed.
POLICY_NOT_INSTALLED: Final[str] = "(none)"

#: Control fields whose relations must hold before installation.
DEPENDENCY_FIELDS: Final[Sequence[str]] = ("Pre-Depends", "Depends")

#: Installer invocation prefix; artifact paths are appended.
INSTALL_COMMAND: Final[Sequence[str]] = (
    "apt-get",
    "install",
    "-V",
    "--no-install-recommends",
)

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
