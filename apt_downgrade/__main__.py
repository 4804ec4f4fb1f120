"""
Executable module for apt-downgrade.

Running:
    python -m apt_downgrade

is equivalent to:
    apt-downgrade
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Explain on stderr why the CLI could not be loaded."""
    sys.stderr.write("apt-downgrade CLI could not be loaded.\n")
    sys.stderr.write(f"Python version : {sys.version}\n")
    try:
        from apt_downgrade.__version__ import __version__

        sys.stderr.write(f"apt-downgrade version: {__version__}\n")
    except ImportError:
        sys.stderr.write("apt-downgrade version: <unknown>\n")
    sys.stderr.write("\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """Entry point for ``python -m apt_downgrade``.

    Returns:
        Exit code returned by the CLI, or 1 if it cannot be imported.
    """
    try:
        # Import lazily so dependencies are only loaded during CLI use
        from apt_downgrade.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
