#!/usr/bin/env python3
"""
Host platform detection: OS family and package manager.
"""

import os
import shutil
import logging
import platform
from typing import Dict, Optional

from .config import ConfigError

logger = logging.getLogger("diagsnap.osdetect")

PACKAGE_MANAGERS = ("rpm", "dpkg", "pkgadd")
DPKG_STATUS = "/var/lib/dpkg/status"


class HostPlatform:
    """OS name plus the package manager used for package queries."""

    def __init__(self, os_name: str, package_manager: Optional[str] = None):
        self.os_name = os_name
        self.package_manager = package_manager

    @property
    def is_solaris(self) -> bool:
        return self.os_name.lower() in ("sunos", "solaris")

    @property
    def is_linux(self) -> bool:
        return self.os_name.lower() == "linux"

    @property
    def family(self) -> str:
        if self.is_solaris:
            return "solaris"
        if self.is_linux:
            return "linux"
        return "other"

    def __repr__(self):
        return f"HostPlatform(os_name={self.os_name!r}, package_manager={self.package_manager!r})"

    def __str__(self):
        return f"{self.os_name} ({self.family}), package manager: {self.package_manager or 'none'}"


def probe_package_manager(host: HostPlatform) -> Optional[str]:
    """Pick the package manager by looking at the installed tooling."""
    if host.is_solaris and shutil.which("pkginfo"):
        return "pkgadd"
    if os.path.exists(DPKG_STATUS) and shutil.which("dpkg"):
        return "dpkg"
    if shutil.which("rpm"):
        return "rpm"
    return None


def detect_platform(environ: Optional[Dict[str, str]] = None) -> HostPlatform:
    """
    Detect the host platform.

    DIAGSNAP_OS and DIAGSNAP_PKG_MANAGER override detection, which makes it
    possible to run against a staged environment.
    """
    env = os.environ if environ is None else environ

    os_name = env.get("DIAGSNAP_OS") or platform.system() or "unknown"
    host = HostPlatform(os_name)

    forced = env.get("DIAGSNAP_PKG_MANAGER")
    if forced:
        forced = forced.strip().lower()
        if forced not in PACKAGE_MANAGERS:
            raise ConfigError(f"DIAGSNAP_PKG_MANAGER must be one of {', '.join(PACKAGE_MANAGERS)}, got {forced!r}")
        host.package_manager = forced
    else:
        host.package_manager = probe_package_manager(host)

    if host.family == "other":
        logger.warning(f"Unsupported OS {os_name!r}; only generic checks will run.")
    logger.info(f"Detected platform: {host}")
    return host
