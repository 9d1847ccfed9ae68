#!/usr/bin/env python3
"""
System related diagnostic modules.
"""

import os
import logging
from typing import Dict, List

from .base import Check, DiagnosticModule, MISSING, OK

logger = logging.getLogger("diagsnap.modules.system")

LINUX_ETC_FILES = [
    "/etc/hosts",
    "/etc/resolv.conf",
    "/etc/nsswitch.conf",
    "/etc/fstab",
    "/etc/os-release",
    "/etc/sysctl.conf",
    "/etc/security/limits.conf",
]

SOLARIS_ETC_FILES = [
    "/etc/inet/hosts",
    "/etc/resolv.conf",
    "/etc/nsswitch.conf",
    "/etc/vfstab",
    "/etc/release",
    "/etc/system",
    "/etc/project",
]


def etc_copy_name(source: str) -> str:
    """Flatten an /etc path into a file name under system/etc."""
    relative = source[len("/etc/"):] if source.startswith("/etc/") else source.lstrip("/")
    return relative.replace("/", "_")


class OSConfigurationModule(DiagnosticModule):
    """Module for OS identification, tuning and configuration files."""

    def __init__(self):
        super().__init__(
            "system",
            "OS Configuration",
            "system"
        )
        self.subsections = {check.name: True for check in self.checks()}
        self.subsections["etc_files"] = True

    def checks(self) -> List[Check]:
        return [
            Check("uname", "system/uname.txt", command=[["uname", "-a"]]),
            Check("date", "system/date.txt", command=[["date"]]),
            Check("kernel_modules", "system/modules.txt",
                  linux=[["lsmod"]],
                  solaris=[["modinfo"]]),
            Check("services", "system/services.txt",
                  linux=[["systemctl", "list-units", "--type=service", "--all", "--no-pager"],
                         ["service", "--status-all"]],
                  solaris=[["svcs", "-a"]]),
            Check("cpu", "system/cpu.txt",
                  linux=[["lscpu"], ["cat", "/proc/cpuinfo"]],
                  solaris=[["psrinfo", "-v"]]),
            Check("hardware", "system/hardware.txt",
                  linux=[["dmidecode", "-t", "system"]],
                  solaris=[["prtdiag", "-v"]]),
            Check("kernel_parameters", "system/kernel_parameters.txt",
                  linux=[["sysctl", "-a"]],
                  solaris=[["sysdef"]]),
            Check("limits", "system/ulimit.txt", command=[["sh", "-c", "ulimit -a"]]),
            Check("packages", "system/packages.txt",
                  packages={
                      "rpm": [["rpm", "-qa"]],
                      "dpkg": [["dpkg", "-l"]],
                      "pkgadd": [["pkginfo", "-l"]],
                  }),
        ]

    def run(self, context) -> Dict[str, str]:
        results = super().run(context)

        if self.subsections["etc_files"]:
            results.update(self.copy_etc_files())

        return results

    def copy_etc_files(self) -> Dict[str, str]:
        """Copy OS configuration files into system/etc."""
        host = self.context.host
        if host.is_solaris:
            sources = SOLARIS_ETC_FILES
        elif host.is_linux:
            sources = LINUX_ETC_FILES
        else:
            return {}

        results = {}
        for source in sources:
            name = etc_copy_name(source)
            results[f"etc/{name}"] = self.copy_file(source, os.path.join("system", "etc", name))

        missing = [source for source in sources if results[f"etc/{etc_copy_name(source)}"] == MISSING]
        if missing:
            self.write_text("system/etc/MISSING.txt", "\n".join(missing) + "\n")

        copied = sum(1 for outcome in results.values() if outcome == OK)
        logger.info(f"Copied {copied} of {len(sources)} configuration files")
        return results

