"""Tests for bundle preparation, disk space precondition and archiving."""

import os
import shutil
import tarfile
from collections import namedtuple

import pytest

from diagsnap import archive
from diagsnap.archive import (
    BUNDLE_DIRS, MARKER_FILE, InsufficientDiskSpaceError, UnsafeWorkDirError,
    check_free_space, create_archive, prepare_bundle, remove_bundle
)

DiskUsage = namedtuple("DiskUsage", "total used free")


def test_prepare_bundle_creates_fixed_layout(tmp_path):
    root = str(tmp_path / "diagsnap")

    prepare_bundle(root)

    for directory in ["resources", "system/etc", "enterprise/find", "networking", "logs"]:
        assert os.path.isdir(os.path.join(root, directory))
    assert len(BUNDLE_DIRS) == 7


def test_prepare_bundle_removes_stale_tree(tmp_path):
    root = tmp_path / "diagsnap"
    (root / "logs").mkdir(parents=True)
    (root / "summary.txt").write_text("previous run\n")
    (root / "logs" / "old.txt").write_text("left over\n")

    prepare_bundle(str(root))

    assert not (root / "logs" / "old.txt").exists()


def test_check_free_space_raises_when_low(tmp_path, monkeypatch):
    monkeypatch.setattr(shutil, "disk_usage", lambda path: DiskUsage(10 << 30, 10 << 30, 50 << 20))

    with pytest.raises(InsufficientDiskSpaceError) as excinfo:
        check_free_space(str(tmp_path / "not" / "yet" / "created"), 100)

    assert excinfo.value.free_mb == 50
    assert excinfo.value.required_mb == 100
    assert excinfo.value.path == str(tmp_path)
    assert "50 MB available, 100 MB required" in str(excinfo.value)


def test_check_free_space_passes(tmp_path, monkeypatch):
    monkeypatch.setattr(shutil, "disk_usage", lambda path: DiskUsage(10 << 30, 0, 2 << 30))

    assert check_free_space(str(tmp_path), 100) == 2048


def test_create_archive_and_remove(tmp_path):
    root = str(tmp_path / "diagsnap")
    prepare_bundle(root)
    with open(os.path.join(root, "system", "uname.txt"), "w") as f:
        f.write("Linux testhost\n")
    target = str(tmp_path / "out" / "diagsnap.tar.gz")

    assert create_archive(root, target) == target
    remove_bundle(root)

    assert not os.path.exists(root)
    with tarfile.open(target, "r:gz") as tar:
        names = tar.getnames()
        uname = tar.extractfile("diagsnap/system/uname.txt").read()
    assert "diagsnap/enterprise/find" in names
    assert uname == b"Linux testhost\n"


def test_existing_ancestor(tmp_path):
    assert archive._existing_ancestor(str(tmp_path / "a" / "b")) == str(tmp_path)


def test_prepare_bundle_writes_marker_and_reuses_own_tree(tmp_path):
    root = str(tmp_path / "diagsnap")
    prepare_bundle(root)
    assert os.path.isfile(os.path.join(root, MARKER_FILE))
    with open(os.path.join(root, "resources", "df.txt"), "w") as f:
        f.write("stale\n")

    prepare_bundle(root)

    assert not os.path.exists(os.path.join(root, "resources", "df.txt"))


def test_prepare_bundle_reuses_empty_directory(tmp_path):
    root = tmp_path / "empty"
    root.mkdir()

    prepare_bundle(str(root))

    assert (root / "logs").is_dir()


def test_prepare_bundle_refuses_foreign_directory(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    (root / "precious.db").write_text("data\n")

    with pytest.raises(UnsafeWorkDirError):
        prepare_bundle(str(root))

    assert (root / "precious.db").read_text() == "data\n"


def test_prepare_bundle_refuses_file_and_symlink(tmp_path):
    regular = tmp_path / "diagsnap"
    regular.write_text("not a directory\n")
    target = tmp_path / "elsewhere"
    target.mkdir()
    (target / "summary.txt").write_text("looks like a bundle\n")
    link = tmp_path / "linked"
    link.symlink_to(target)

    with pytest.raises(UnsafeWorkDirError):
        prepare_bundle(str(regular))
    with pytest.raises(UnsafeWorkDirError):
        prepare_bundle(str(link))

    assert regular.read_text() == "not a directory\n"
    assert (target / "summary.txt").exists()


def test_create_archive_replaces_symlink_instead_of_following_it(tmp_path):
    root = str(tmp_path / "diagsnap")
    prepare_bundle(root)
    victim = tmp_path / "passwd"
    victim.write_text("root:x:0:0\n")
    archive_path = tmp_path / "diagsnap.tar.gz"
    archive_path.symlink_to(victim)

    create_archive(root, str(archive_path))

    assert victim.read_text() == "root:x:0:0\n"
    assert not archive_path.is_symlink()
    with tarfile.open(str(archive_path), "r:gz") as tar:
        assert "diagsnap/logs" in tar.getnames()


def test_create_archive_overwrites_previous_archive(tmp_path):
    root = str(tmp_path / "diagsnap")
    prepare_bundle(root)
    archive_path = tmp_path / "diagsnap.tar.gz"
    archive_path.write_text("old archive\n")

    create_archive(root, str(archive_path))

    with tarfile.open(str(archive_path), "r:gz") as tar:
        assert "diagsnap/resources" in tar.getnames()
