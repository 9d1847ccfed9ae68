"""Shared fixtures: a fake command runner and a prepared bundle context."""

import subprocess

import pytest

from diagsnap.archive import prepare_bundle
from diagsnap.config import Settings
from diagsnap.modules.base import CollectionContext
from diagsnap.osdetect import HostPlatform


class FakeRunner:
    """Stands in for subprocess.run and shutil.which."""

    def __init__(self):
        self.calls = []
        self.missing = set()
        self.outputs = {}
        self.returncodes = {}
        self.timeouts = set()

    def which(self, name):
        if name in self.missing:
            return None
        return f"/usr/bin/{name}"

    def run(self, command, **kwargs):
        self.calls.append(list(command))
        key = " ".join(command)
        if key in self.timeouts:
            raise subprocess.TimeoutExpired(command, kwargs.get("timeout"), output=b"partial\n")
        stdout = self.outputs.get(key, f"output of {key}\n")
        return subprocess.CompletedProcess(command, self.returncodes.get(key, 0), stdout=stdout)

    def ran(self, *command):
        return list(command) in self.calls

    def executables(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_runner(monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(subprocess, "run", runner.run)
    monkeypatch.setattr("shutil.which", runner.which)
    return runner


@pytest.fixture
def settings(tmp_path):
    settings = Settings()
    settings.product_home = str(tmp_path / "opt" / "enterprise")
    settings.timeout = 5
    return settings


@pytest.fixture
def make_context(tmp_path, settings):
    """Build a context for a given OS / package manager over a fresh bundle."""

    def _make(os_name="Linux", package_manager="rpm"):
        root = prepare_bundle(str(tmp_path / "bundle"))
        host = HostPlatform(os_name, package_manager)
        return CollectionContext(root, host, settings, hostname="testhost")

    return _make
