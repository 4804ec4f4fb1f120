from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Sequence

import pytest

from apt_downgrade.exceptions import ToolError
from apt_downgrade.utils.console import reconfigure_console
from apt_downgrade.utils.logger import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def _isolate_global_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Undo logger and console changes made by CLI invocations."""
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("APT_DOWNGRADE_CONFIG", raising=False)
    reconfigure_console()
    yield
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    root.propagate = True
    reconfigure_console()


class FakeRunner:
    """Canned host tool output keyed by argv prefix.

    Unknown commands fail like a tool that exits with status 100.
    """

    def __init__(self, responses: Dict[Sequence[str], str]) -> None:
        self.responses = {tuple(k): v for k, v in responses.items()}
        self.calls: List[List[str]] = []

    def __call__(self, args: Sequence[str]) -> str:
        argv = list(args)
        self.calls.append(argv)
        for prefix in sorted(self.responses, key=len, reverse=True):
            if tuple(argv[: len(prefix)]) == prefix:
                return self.responses[prefix]
        raise ToolError(f"{argv[0]} returned 100", command=argv, returncode=100)


def policy_output(name: str, installed: str) -> str:
    """Return ``apt-cache policy`` output for one package."""
    return (
        f"{name}:\n"
        f"  Installed: {installed}\n"
        f"  Candidate: {installed}\n"
        "  Version table:\n"
    )


def control_stanza(name: str, version: str, depends: str = "", arch: str = "amd64") -> str:
    """Return a control stanza as printed by ``dpkg-deb --field``."""
    lines = [
        f"Package: {name}",
        f"Version: {version}",
        f"Architecture: {arch}",
        "Maintainer: Debian Maintainers <debian@example.org>",
    ]
    if depends:
        lines.append(f"Depends: {depends}")
    lines.append("Description: test package")
    return "\n".join(lines) + "\n"


def write_archive(directory: Path, name: str, version: str, arch: str = "amd64") -> Path:
    """Create an empty archive file named like apt's cache does."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}_{version.replace(':', '%3a')}_{arch}.deb"
    path.write_bytes(b"!<arch>\n")
    return path
