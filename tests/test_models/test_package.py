from __future__ import annotations

import pytest

from apt_downgrade.models import Package, PackageVersion, ResolutionEnvironment


def _pkg(name: str = "curl", version: str = "7.50.0", **kwargs) -> Package:
    return Package(name, PackageVersion(version), **kwargs)


@pytest.mark.unit
class TestResolutionEnvironment:
    """Tests for ResolutionEnvironment."""

    def test_architectures_include_independent(self) -> None:
        env = ResolutionEnvironment("amd64", "/var/cache/apt/archives")

        assert env.architectures == ("amd64", "all", "any")

    def test_is_frozen(self) -> None:
        env = ResolutionEnvironment("arm64", "/var/cache/apt/archives")

        with pytest.raises(AttributeError):
            env.architecture = "amd64"  # type: ignore[misc]


@pytest.mark.unit
class TestPackage:
    """Tests for Package."""

    def test_local_and_remote_locations(self) -> None:
        local = _pkg(local_path="/var/cache/apt/archives/curl_7.50.0_amd64.deb")
        remote = _pkg(source_url="http://mirror/pool/main/c/curl/curl_7.50.0_amd64.deb")

        assert local.is_local
        assert local.location.endswith(".deb")
        assert not remote.is_local
        assert remote.location.startswith("http://")
        assert _pkg().location is None

    def test_matches_ignores_artifact_location(self) -> None:
        installed = _pkg(architecture="amd64")
        archive = _pkg(architecture="amd64", local_path="/tmp/curl.deb")

        assert archive.matches(installed)
        assert archive != installed

    def test_matches_compares_architecture_when_both_known(self) -> None:
        amd64 = _pkg(architecture="amd64")

        assert not amd64.matches(_pkg(architecture="i386"))
        assert amd64.matches(_pkg())

    def test_matches_uses_version_equality(self) -> None:
        assert _pkg(version="1.09").matches(_pkg(version="1.9"))
        assert not _pkg(version="1.0").matches(_pkg(version="1.1"))
        assert not _pkg(name="wget").matches(_pkg())

    def test_with_local_path(self) -> None:
        remote = _pkg(source_url="http://mirror/curl.deb")

        local = remote.with_local_path("/cache/curl.deb")

        assert local.local_path == "/cache/curl.deb"
        assert local.source_url == remote.source_url
        assert remote.local_path is None

    def test_str(self) -> None:
        assert str(_pkg(architecture="amd64")) == "curl:amd64 7.50.0"
        assert str(_pkg()) == "curl 7.50.0"
