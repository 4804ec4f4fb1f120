"""
apt-downgrade: downgrade a Debian package together with its dependencies

Given a package name and a target version, apt-downgrade walks the
dependency graph breadth-first, picks one version per dependency
(keeping already-installed versions whenever they still satisfy the
constraints), downloads archives that are only available from the mirror
pool, and prints the ``apt-get install`` command that performs the
downgrade.
"""

from __future__ import annotations

from apt_downgrade.__version__ import __version__

__author__ = "apt-downgrade Contributors"
__license__ = "GPL-3.0-or-later"
__description__ = "Downgrade Debian packages and their dependencies."

__all__ = [
    "__version__",
]
