#!/usr/bin/env python3
"""
Collection runner: runs each module in turn and writes the run summary.
"""

import os
import datetime
import logging
from typing import Dict, List

from .modules.base import CollectionContext, DiagnosticModule, OK, SKIPPED

logger = logging.getLogger("diagsnap.collector")

SUMMARY_FILE = "summary.txt"
LOG_FILE = "diagsnap.log"


class Collector:
    """Runs diagnostic modules sequentially against one bundle."""

    def __init__(self, modules: List[DiagnosticModule], context: CollectionContext):
        self.modules = modules
        self.context = context
        self.results: Dict[str, Dict[str, str]] = {}
        self.started = None
        self.finished = None

    def run(self) -> Dict[str, Dict[str, str]]:
        """Run every enabled module; a failing module never stops the others."""
        self.started = datetime.datetime.now()

        for module in self.modules:
            if not module.enabled:
                logger.info(f"Skipping disabled module: {module.name}")
                continue

            logger.info(f"Running module: {module.name}")
            try:
                self.results[module.name] = module.run(self.context)
            except Exception as e:
                logger.error(f"Error running module {module.name}: {e}", exc_info=True)
                self.results[module.name] = {"module": f"error: {e}"}
                continue

            failed = [name for name, outcome in self.results[module.name].items()
                      if outcome not in (OK, SKIPPED)]
            if failed:
                logger.info(f"Module {module.name}: {len(failed)} checks incomplete: {', '.join(failed)}")

        self.finished = datetime.datetime.now()
        return self.results

    def generate_summary(self) -> str:
        """Build the human-readable run summary."""
        timestamp = (self.started or datetime.datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        report = [
            "=" * 80,
            "DIAGNOSTIC SNAPSHOT SUMMARY",
            f"Generated: {timestamp}",
            f"Hostname: {self.context.hostname}",
            f"Platform: {self.context.host}",
            f"Product home: {self.context.settings.product_home}",
            "=" * 80,
            ""
        ]

        if self.started and self.finished:
            elapsed = (self.finished - self.started).total_seconds()
            report.append(f"Collection took {elapsed:.1f} seconds")
            report.append("")

        for module in self.modules:
            report.append(f"{module.description.upper()} ({module.directory}/)")
            report.append("-" * 80)

            if not module.enabled:
                report.append("Module disabled.")
            elif module.name not in self.results:
                report.append("Module did not run.")
            elif not self.results[module.name]:
                report.append("No results collected for this module.")
            else:
                for check, outcome in self.results[module.name].items():
                    report.append(f"  {check:<40} {outcome}")
            report.append("")

        return "\n".join(report)

    def write_summary(self) -> str:
        """Write summary.txt into the bundle root and return its path."""
        path = os.path.join(self.context.bundle_root, SUMMARY_FILE)
        with open(path, "w") as f:
            f.write(self.generate_summary())
            f.write("\n")
        return path
