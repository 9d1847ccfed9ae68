#!/usr/bin/env python3
"""
Bundle directory lifecycle: disk space precondition, layout, tar.gz archive.
"""

import os
import shutil
import tarfile
import logging

from .config import ConfigError

logger = logging.getLogger("diagsnap.archive")

MARKER_FILE = ".diagsnap-bundle"
# Any of these in a directory marks it as a previous bundle
BUNDLE_MARKERS = [MARKER_FILE, "diagsnap.log", "summary.txt"]

BUNDLE_DIRS = [
    "resources",
    "system",
    os.path.join("system", "etc"),
    "enterprise",
    os.path.join("enterprise", "find"),
    "networking",
    "logs",
]


class UnsafeWorkDirError(ConfigError):
    """Raised when the work directory holds data diagsnap did not create."""


class InsufficientDiskSpaceError(Exception):
    """Raised when there is not enough free space to collect a bundle."""

    def __init__(self, path: str, free_mb: int, required_mb: int):
        self.path = path
        self.free_mb = free_mb
        self.required_mb = required_mb
        super().__init__(
            f"Not enough free disk space in {path}: {free_mb} MB available, "
            f"{required_mb} MB required. Free some space or choose another work directory."
        )


def _existing_ancestor(path: str) -> str:
    path = os.path.abspath(path)
    while not os.path.exists(path):
        parent = os.path.dirname(path)
        if parent == path:
            break
        path = parent
    return path


def free_space_mb(path: str) -> int:
    """Free space in MB on the filesystem holding path (or its nearest existing parent)."""
    usage = shutil.disk_usage(_existing_ancestor(path))
    return usage.free // (1024 * 1024)


def check_free_space(path: str, required_mb: int) -> int:
    """Raise InsufficientDiskSpaceError unless required_mb is free at path."""
    free_mb = free_space_mb(path)
    if free_mb < required_mb:
        raise InsufficientDiskSpaceError(_existing_ancestor(path), free_mb, required_mb)
    logger.info(f"Free disk space in {_existing_ancestor(path)}: {free_mb} MB")
    return free_mb


def is_bundle(root: str) -> bool:
    """True if root is a directory left behind by an earlier run."""
    return any(os.path.exists(os.path.join(root, name)) for name in BUNDLE_MARKERS)


def prepare_bundle(root: str) -> str:
    """
    Create a fresh bundle tree, removing a stale one left by an earlier run.

    Only an empty directory or a previous bundle is reused; anything else
    (a file, a symlink, a directory with other content) is refused.
    """
    if os.path.islink(root):
        raise UnsafeWorkDirError(f"Work directory {root} is a symbolic link")
    if os.path.exists(root):
        if not os.path.isdir(root):
            raise UnsafeWorkDirError(f"Work directory {root} exists and is not a directory")
        if os.listdir(root) and not is_bundle(root):
            raise UnsafeWorkDirError(f"Work directory {root} is not empty and was not created by diagsnap")
        logger.info(f"Removing stale bundle directory: {root}")
        shutil.rmtree(root)
    for directory in BUNDLE_DIRS:
        os.makedirs(os.path.join(root, directory), exist_ok=True)
    with open(os.path.join(root, MARKER_FILE), "w") as f:
        f.write("diagsnap bundle\n")
    logger.info(f"Created bundle directory: {root}")
    return root


def create_archive(root: str, archive_path: str) -> str:
    """
    Write root as a gzip-compressed tar; the top-level entry is the bundle directory name.

    An existing file or symlink at archive_path is replaced, never written through.
    """
    directory = os.path.dirname(os.path.abspath(archive_path))
    os.makedirs(directory, exist_ok=True)
    if os.path.lexists(archive_path):
        if os.path.isdir(archive_path) and not os.path.islink(archive_path):
            raise IsADirectoryError(f"Archive path {archive_path} is a directory")
        os.unlink(archive_path)

    flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_NOFOLLOW", 0)
    arcname = os.path.basename(os.path.normpath(root))
    with os.fdopen(os.open(archive_path, flags, 0o600), "wb") as fileobj:
        with tarfile.open(fileobj=fileobj, mode="w:gz") as tar:
            tar.add(root, arcname=arcname)
    logger.info(f"Created archive: {archive_path}")
    return archive_path


def remove_bundle(root: str):
    """Discard the bundle tree once archived."""
    shutil.rmtree(root, ignore_errors=True)
    logger.info(f"Removed bundle directory: {root}")
