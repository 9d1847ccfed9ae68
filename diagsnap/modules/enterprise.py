#!/usr/bin/env python3
"""
Product snapshot module: install tree listings, configuration copies,
package details and running processes of the supported product.
"""

import os
import glob
import logging
from typing import Dict, List

from .base import Check, DiagnosticModule, MISSING, OK, SKIPPED

logger = logging.getLogger("diagsnap.modules.enterprise")


def listing_name(root: str) -> str:
    """File name for the find listing of a directory."""
    flat = root.strip("/").replace("/", "_")
    return f"{flat or 'root'}.txt"


class EnterpriseProductModule(DiagnosticModule):
    """Module for product-specific file snapshots."""

    def __init__(self):
        super().__init__(
            "enterprise",
            "Product Snapshot",
            "enterprise"
        )
        self.subsections = {
            "find": True,
            "files": True,
            "package": True,
            "processes": True,
            "disk_usage": True
        }

    def checks(self) -> List[Check]:
        settings = self.context.settings
        product = (settings.product_name or settings.product_package or "").strip().lower()
        package = settings.product_package
        checks = [
            Check("package", "enterprise/package.txt",
                  packages={
                      "rpm": [["rpm", "-qi", package]],
                      "dpkg": [["dpkg", "-s", package]],
                      "pkgadd": [["pkginfo", "-l", package]],
                  }),
        ]
        # An empty name would match every process
        if product:
            checks.append(Check("processes", "enterprise/processes.txt",
                                command=[["ps", "-ef"]],
                                filter_func=lambda line: line.lstrip().startswith("UID") or product in line.lower()))
        return checks

    def run(self, context) -> Dict[str, str]:
        results = super().run(context)
        home = context.settings.product_home

        if self.subsections["processes"] and "processes" not in results:
            logger.warning("No product name or package configured; process check skipped")
            results["processes"] = SKIPPED

        home_present = os.path.isdir(home)
        if not home_present:
            logger.warning(f"Product home not found: {home}")
            self.write_text("enterprise/PRODUCT_HOME_MISSING.txt",
                            f"Product home {home} does not exist on {context.hostname}\n")

        if self.subsections["find"]:
            results.update(self.list_search_roots())

        if self.subsections["files"]:
            results["files"] = self.copy_product_files() if home_present else SKIPPED

        if self.subsections["disk_usage"]:
            if home_present:
                results["disk_usage"] = self.capture_command(["du", "-sk", home], "enterprise/du.txt")
            else:
                results["disk_usage"] = SKIPPED

        return results

    def list_search_roots(self) -> Dict[str, str]:
        """Write a find listing for every search root."""
        results = {}
        for root in self.context.settings.search_roots:
            relpath = os.path.join("enterprise", "find", listing_name(root))
            key = f"find:{root}"
            if not os.path.isdir(root):
                self.write_text(relpath, f"Directory not found: {root}\n")
                results[key] = MISSING
                continue
            results[key] = self.capture_command(["find", root, "-ls"], relpath)
        return results

    def copy_product_files(self) -> str:
        """Copy files matching the configured patterns, keeping their layout."""
        home = self.context.settings.product_home
        matched = []
        for pattern in self.context.settings.product_files:
            matched.extend(path for path in glob.glob(os.path.join(home, pattern)) if os.path.isfile(path))

        if not matched:
            self.write_text("enterprise/files/NONE_MATCHED.txt",
                            "No files matched: " + ", ".join(self.context.settings.product_files) + "\n")
            return MISSING

        failures = 0
        for path in sorted(set(matched)):
            relative = os.path.relpath(path, home)
            if self.copy_file(path, os.path.join("enterprise", "files", relative)) != OK:
                failures += 1

        logger.info(f"Copied {len(set(matched)) - failures} product files from {home}")
        return OK if not failures else f"failed ({failures} of {len(set(matched))} files)"
