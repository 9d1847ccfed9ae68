#!/usr/bin/env python3
"""
Base module for all diagnostic modules.

A module owns a set of checks. Each check writes exactly one file under the
bundle root; a failing check leaves a note in that file and never stops the
run.
"""

import os
import shutil
import socket
import tarfile
import time
import subprocess
import logging
from typing import Callable, Dict, List, Optional, Sequence

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("diagsnap.modules")

# Check outcomes
OK = "ok"
SKIPPED = "skipped"
UNAVAILABLE = "unavailable"
MISSING = "missing"
TIMEOUT = "timeout"

Command = List[str]


class CollectionContext:
    """Everything a module needs to know about the current run."""

    def __init__(self, bundle_root: str, host, settings, hostname: Optional[str] = None):
        self.bundle_root = os.path.abspath(bundle_root)
        self.host = host
        self.settings = settings
        self.hostname = hostname or socket.gethostname()

    def path(self, relpath: str) -> str:
        """Resolve a bundle-relative path, refusing anything outside the bundle."""
        target = os.path.abspath(os.path.join(self.bundle_root, relpath))
        if os.path.commonpath([self.bundle_root, target]) != self.bundle_root:
            raise ValueError(f"Output path escapes the bundle: {relpath}")
        return target


class Check:
    """
    A named command check.

    Variants are ordered candidate commands; the first candidate whose
    executable is installed is used. `packages` dispatches on the package
    manager instead of the OS family.
    """

    def __init__(self, name: str, path: str, command: Optional[Sequence[Command]] = None,
                 linux: Optional[Sequence[Command]] = None, solaris: Optional[Sequence[Command]] = None,
                 packages: Optional[Dict[str, Sequence[Command]]] = None,
                 trim_lines: int = 0, filter_func: Optional[Callable[[str], bool]] = None):
        self.name = name
        self.path = path
        self.command = command
        self.linux = linux
        self.solaris = solaris
        self.packages = packages
        self.trim_lines = trim_lines
        self.filter_func = filter_func

    def candidates(self, host) -> List[Command]:
        """Return the candidate commands for this host, best first."""
        if self.packages is not None:
            variant = self.packages.get(host.package_manager)
        elif host.is_solaris and self.solaris is not None:
            variant = self.solaris
        elif host.is_linux and self.linux is not None:
            variant = self.linux
        else:
            variant = self.command
        return [list(command) for command in (variant or [])]


class DiagnosticModule:
    """Base class for all diagnostic modules."""

    def __init__(self, name: str, description: str, directory: str):
        self.name = name
        self.description = description
        self.directory = directory
        self.enabled = True
        self.subsections = {}
        self.context: Optional[CollectionContext] = None

    def checks(self) -> List[Check]:
        """Table of command checks; override in subclasses."""
        return []

    def run(self, context: CollectionContext) -> Dict[str, str]:
        """Run the enabled checks and return check name -> outcome."""
        self.context = context
        results = {}
        for check in self.checks():
            if self.subsections.get(check.name, True):
                results[check.name] = self.run_check(check)
        return results

    def run_check(self, check: Check) -> str:
        """Run the first installed candidate of a check."""
        host = self.context.host
        candidates = check.candidates(host)
        if not candidates:
            logger.info(f"{self.name}.{check.name}: no command for {host.family}, skipped")
            return SKIPPED

        for command in candidates:
            if shutil.which(command[0]):
                return self.capture_command(command, check.path, check.trim_lines, check.filter_func)

        # Nothing installed; record the preferred command in the output file
        return self.capture_command(candidates[0], check.path, check.trim_lines, check.filter_func)

    def capture_command(self, command: Command, relpath: str, trim_lines: int = 0,
                        filter_func: Optional[Callable[[str], bool]] = None) -> str:
        """
        Run a command and write its combined stdout/stderr to a bundle file.

        Args:
            command: Command to run as a list of strings
            relpath: Output file, relative to the bundle root
            trim_lines: Number of last lines to keep (0 for all)
            filter_func: Function to filter lines (should return True to keep line)

        Returns:
            Outcome string for the summary
        """
        display = " ".join(command)
        if shutil.which(command[0]) is None:
            self.write_text(relpath, f"(command not available: {display})\n")
            logger.warning(f"{self.name}: command not available: {display}")
            return UNAVAILABLE

        timeout = self.context.settings.timeout
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                check=False,
                timeout=timeout
            )
        except subprocess.TimeoutExpired as e:
            partial = e.output or ""
            if isinstance(partial, bytes):
                partial = partial.decode("utf-8", errors="replace")
            self.write_text(relpath, f"{partial}\n[command timed out after {timeout} seconds: {display}]\n")
            logger.warning(f"{self.name}: command timed out after {timeout} seconds: {display}")
            return TIMEOUT
        except OSError as e:
            self.write_text(relpath, f"Failed to run command {display}: {e}\n")
            logger.warning(f"{self.name}: failed to run command {display}: {e}")
            return f"error: {e}"

        output = result.stdout or ""

        # Apply filtering if provided
        if filter_func:
            output = "\n".join(line for line in output.splitlines() if filter_func(line))

        # Trim to last N lines if requested
        if trim_lines > 0:
            lines = output.splitlines()
            if len(lines) > trim_lines:
                output = f"[...showing only last {trim_lines} lines...]\n" + "\n".join(lines[-trim_lines:])

        if output and not output.endswith("\n"):
            output += "\n"

        if result.returncode != 0:
            output += f"[command exited with status {result.returncode}: {display}]\n"
            self.write_text(relpath, output)
            logger.warning(f"{self.name}: {display} exited with status {result.returncode}")
            return f"failed (rc={result.returncode})"

        self.write_text(relpath, output)
        return OK

    def copy_file(self, source: str, relpath: str) -> str:
        """Copy a host file into the bundle."""
        target = self.context.path(relpath)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        try:
            shutil.copyfile(source, target)
            return OK
        except FileNotFoundError:
            logger.info(f"{self.name}: file not found: {source}")
            return MISSING
        except OSError as e:
            logger.warning(f"{self.name}: failed to copy {source}: {e}")
            return f"error: {e}"

    def archive_directory(self, source: str, relpath: str, max_age_days: Optional[int] = None) -> str:
        """
        Write a gzip-compressed tar of a host directory into the bundle.

        Files older than max_age_days are left out; directories are kept so
        the layout stays visible.
        """
        if not os.path.isdir(source):
            self.write_text(relpath + ".missing", f"Directory not found: {source}\n")
            logger.info(f"{self.name}: directory not found: {source}")
            return MISSING

        cutoff = time.time() - max_age_days * 86400 if max_age_days else None

        def age_filter(info):
            if cutoff is not None and info.isfile() and info.mtime < cutoff:
                return None
            return info

        target = self.context.path(relpath)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        try:
            with tarfile.open(target, "w:gz") as tar:
                tar.add(source, arcname=os.path.basename(source.rstrip("/")) or "root", filter=age_filter)
            return OK
        except (OSError, tarfile.TarError) as e:
            logger.warning(f"{self.name}: failed to archive {source}: {e}")
            return f"error: {e}"

    def write_text(self, relpath: str, text: str) -> str:
        """Write generated text into the bundle."""
        target = self.context.path(relpath)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "w") as f:
            f.write(text)
        return target

