"""
apt-downgrade version information.

Single source of truth for the package version.
"""

from __future__ import annotations

__version__ = "0.2.0"
