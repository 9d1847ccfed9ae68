"""Tests for configuration loading and platform detection."""

import pytest

from diagsnap import config, osdetect
from diagsnap.config import ConfigError, load_settings, write_default_config
from diagsnap.osdetect import HostPlatform, detect_platform


@pytest.fixture(autouse=True)
def no_system_config(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "DEFAULT_CONFIG_PATH", str(tmp_path / "absent.conf"))


def test_defaults_without_config_file():
    settings = load_settings(environ={})

    assert settings.source is None
    assert settings.work_dir == "/tmp/diagsnap"
    assert settings.archive == "/tmp/diagsnap.tar.gz"
    assert settings.log_dir == "/opt/enterprise/logs"
    assert settings.search_roots == ["/opt/enterprise"]
    assert all(settings.is_enabled(name) for name in config.MODULE_NAMES)


def test_explicit_missing_config_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "missing.conf"), environ={})


def test_written_default_config_loads(tmp_path):
    path = write_default_config(str(tmp_path / "etc" / "diagsnap.conf"))

    settings = load_settings(path, environ={})

    assert settings.source == path
    assert settings.min_free_mb == 100
    assert settings.timeout == 60
    assert settings.product_files == ["conf/*.conf", "conf/*.properties", "conf/*.xml", "version*"]
    assert settings.find_roots == []
    assert settings.max_log_age_days == 7
    assert settings.product_log_dir is None


def test_config_file_values(tmp_path):
    path = tmp_path / "diagsnap.conf"
    path.write_text(
        "[modules]\nnetwork = false\n"
        "[output]\nwork_dir = /var/tmp/snap\nkeep_tree = yes\n"
        "[enterprise]\nhome = /srv/app\nlog_dir = /var/log/app\nfind_roots = /srv/app, /var/app\n"
        "max_log_age_days = 0\n"
    )

    settings = load_settings(environ={"DIAGSNAP_CONFIG": str(path)})

    assert not settings.is_enabled("network")
    assert settings.is_enabled("logs")
    assert settings.work_dir == "/var/tmp/snap"
    assert settings.keep_tree is True
    assert settings.log_dir == "/var/log/app"
    assert settings.search_roots == ["/srv/app", "/var/app"]
    assert settings.max_log_age_days is None


def test_environment_overrides(tmp_path):
    path = tmp_path / "diagsnap.conf"
    path.write_text("[enterprise]\nhome = /srv/app\n")

    settings = load_settings(str(path), environ={
        "DIAGSNAP_PRODUCT_HOME": "/opt/other",
        "DIAGSNAP_WORK_DIR": "/scratch/snap",
        "DIAGSNAP_ARCHIVE": "/scratch/snap.tar.gz",
    })

    assert settings.product_home == "/opt/other"
    assert settings.work_dir == "/scratch/snap"
    assert settings.archive == "/scratch/snap.tar.gz"


@pytest.mark.parametrize("body", [
    "[commands]\ntimeout = soon\n",
    "[commands]\ntimeout = 0\n",
    "[output]\nkeep_tree = maybe\n",
])
def test_invalid_values(tmp_path, body):
    path = tmp_path / "diagsnap.conf"
    path.write_text(body)

    with pytest.raises(ConfigError):
        load_settings(str(path), environ={})


def test_platform_from_environment():
    host = detect_platform({"DIAGSNAP_OS": "SunOS", "DIAGSNAP_PKG_MANAGER": "pkgadd"})

    assert host.is_solaris
    assert host.family == "solaris"
    assert host.package_manager == "pkgadd"


def test_unknown_package_manager_rejected():
    with pytest.raises(ConfigError):
        detect_platform({"DIAGSNAP_OS": "Linux", "DIAGSNAP_PKG_MANAGER": "pacman"})


def test_probe_package_manager(monkeypatch, tmp_path):
    installed = {"rpm", "dpkg", "pkginfo"}
    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}" if name in installed else None)
    status = tmp_path / "status"
    monkeypatch.setattr(osdetect, "DPKG_STATUS", str(status))

    assert osdetect.probe_package_manager(HostPlatform("SunOS")) == "pkgadd"
    assert osdetect.probe_package_manager(HostPlatform("Linux")) == "rpm"
    status.write_text("")
    assert osdetect.probe_package_manager(HostPlatform("Linux")) == "dpkg"
    installed.clear()
    assert osdetect.probe_package_manager(HostPlatform("Linux")) is None


def test_other_family():
    host = HostPlatform("Darwin")

    assert host.family == "other"
    assert not host.is_linux and not host.is_solaris
