from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from apt_downgrade.__main__ import _print_startup_error, main


@pytest.mark.unit
class TestMain:
    """Tests for ``python -m apt_downgrade``."""

    @pytest.mark.parametrize("exit_code", [0, 1, 100, 130])
    def test_returns_cli_exit_code(self, exit_code: int) -> None:
        cli_module = MagicMock()
        cli_module.main = MagicMock(return_value=exit_code)

        with patch.dict(sys.modules, {"apt_downgrade.cli": cli_module}):
            assert main() == exit_code

        cli_module.main.assert_called_once_with()

    def test_import_failure_returns_one(self, capsys: pytest.CaptureFixture) -> None:
        real_import = __import__

        def failing_import(name, *args, **kwargs):
            if name == "apt_downgrade.cli":
                raise ImportError("No module named 'debian'")
            return real_import(name, *args, **kwargs)

        with patch("builtins.__import__", side_effect=failing_import):
            assert main() == 1

        err = capsys.readouterr().err
        assert "apt-downgrade CLI could not be loaded." in err
        assert "ImportError: No module named 'debian'" in err


@pytest.mark.unit
class TestPrintStartupError:
    """Tests for the startup error report."""

    def test_reports_version_and_error(self, capsys: pytest.CaptureFixture) -> None:
        version_module = MagicMock(__version__="9.9.9")

        with patch.dict(sys.modules, {"apt_downgrade.__version__": version_module}):
            _print_startup_error(ImportError("boom"))

        captured = capsys.readouterr()
        assert captured.out == ""
        lines = captured.err.split("\n")
        assert "apt-downgrade version: 9.9.9" in lines
        assert "" in lines
        assert "ImportError: boom" in lines

    def test_unknown_version(self, capsys: pytest.CaptureFixture) -> None:
        real_import = __import__

        def failing_import(name, *args, **kwargs):
            if name == "apt_downgrade.__version__":
                raise ImportError("gone")
            return real_import(name, *args, **kwargs)

        with patch("builtins.__import__", side_effect=failing_import):
            _print_startup_error(ImportError("boom"))

        assert "apt-downgrade version: <unknown>" in capsys.readouterr().err
