#!/usr/bin/env python3
"""
Log snapshot module.
"""

import os
from typing import Dict, List

from .base import Check, DiagnosticModule, MISSING, SKIPPED

LINUX_SYSTEM_LOGS = ["/var/log/messages", "/var/log/syslog"]
SOLARIS_SYSTEM_LOGS = ["/var/adm/messages"]


class LogSnapshotModule(DiagnosticModule):
    """Module for system and product logs."""

    def __init__(self):
        super().__init__(
            "logs",
            "Logs",
            "logs"
        )
        self.subsections = {
            "system_log": True,
            "journal": True,
            "dmesg": True,
            "product_logs": True
        }

    def checks(self) -> List[Check]:
        return [
            Check("journal", "logs/journal.txt",
                  linux=[["journalctl", "-b", "-n", "5000", "--no-pager"]]),
            Check("dmesg", "logs/dmesg.txt", command=[["dmesg"]]),
        ]

    def run(self, context) -> Dict[str, str]:
        results = super().run(context)

        if self.subsections["system_log"]:
            results["system_log"] = self.copy_system_log()

        if self.subsections["product_logs"]:
            settings = context.settings
            results["product_logs"] = self.archive_directory(
                settings.log_dir, "logs/product_logs.tar.gz", settings.max_log_age_days
            )

        return results

    def copy_system_log(self) -> str:
        """Copy the first system log that exists for this platform."""
        host = self.context.host
        if host.is_solaris:
            candidates = SOLARIS_SYSTEM_LOGS
        elif host.is_linux:
            candidates = LINUX_SYSTEM_LOGS
        else:
            return SKIPPED

        for path in candidates:
            if os.path.exists(path):
                return self.copy_file(path, os.path.join("logs", os.path.basename(path)))

        self.write_text("logs/system_log.missing", "None of these exist: " + ", ".join(candidates) + "\n")
        return MISSING
