#!/usr/bin/env python3
"""
Main entry point for the diagnostic snapshot tool.
"""

import os
import sys
import socket
import tarfile
import argparse
import logging
from typing import List, Optional

from .archive import (
    InsufficientDiskSpaceError, UnsafeWorkDirError, check_free_space, create_archive, prepare_bundle, remove_bundle
)
from .collector import Collector, LOG_FILE
from .config import ConfigError, Settings, load_settings, write_default_config
from .modules import get_all_modules
from .modules.base import CollectionContext, DiagnosticModule
from .osdetect import detect_platform

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("diagsnap")


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Collect host diagnostics into a support archive")
    parser.add_argument("-o", "--output", help="Archive path (default: /tmp/diagsnap.tar.gz)")
    parser.add_argument("-w", "--work-dir", help="Bundle directory to collect into (default: /tmp/diagsnap)")
    parser.add_argument("-c", "--config", help="Configuration file")
    parser.add_argument("--product-home", help="Install directory of the product")
    parser.add_argument("-k", "--keep", action="store_true", help="Keep the bundle directory after archiving")
    parser.add_argument("--write-config", metavar="PATH", help="Write the default configuration file and exit")
    parser.add_argument("--version", action="store_true", help="Show version information")
    return parser.parse_args(argv)


def check_root_privileges():
    """Check if running with root privileges."""
    if hasattr(os, "geteuid") and os.geteuid() != 0:
        logger.warning("Some diagnostic commands require root privileges.")
        logger.warning("Consider running this script with sudo for complete diagnostics.")
        return False
    return True


def apply_arguments(settings: Settings, args) -> Settings:
    """Layer command line flags over the loaded settings."""
    if args.output:
        settings.archive = args.output
    if args.work_dir:
        settings.work_dir = args.work_dir
    if args.product_home:
        settings.product_home = args.product_home
    if args.keep:
        settings.keep_tree = True

    bundle_root = os.path.abspath(settings.work_dir)
    archive = os.path.abspath(settings.archive)
    if bundle_root == os.path.dirname(bundle_root):
        raise ConfigError("The work directory must not be the filesystem root")
    if os.path.commonpath([bundle_root, archive]) == bundle_root:
        raise ConfigError(f"Archive {settings.archive} must not be inside the work directory {settings.work_dir}")
    return settings


def select_modules(settings: Settings) -> List[DiagnosticModule]:
    """Instantiate the modules and apply the [modules] enable flags."""
    modules = get_all_modules()
    for module in modules:
        module.enabled = settings.is_enabled(module.name)
    return modules


def attach_bundle_log(bundle_root: str) -> logging.Handler:
    """Mirror the run log into the bundle so it ships with the archive."""
    handler = logging.FileHandler(os.path.join(bundle_root, LOG_FILE))
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    handler.setLevel(logging.INFO)
    # The bundle log is INFO level regardless of the console configuration
    if logger.getEffectiveLevel() > logging.INFO:
        logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    return handler


def detach_bundle_log(handler: logging.Handler):
    logger.removeHandler(handler)
    handler.close()


def collect(settings: Settings, modules: Optional[List[DiagnosticModule]] = None) -> int:
    """Run one full collection. Returns the process exit status."""
    host = detect_platform()
    check_root_privileges()

    try:
        check_free_space(settings.work_dir, settings.min_free_mb)
    except InsufficientDiskSpaceError as e:
        logger.error(str(e))
        return 1

    try:
        bundle_root = prepare_bundle(settings.work_dir)
    except UnsafeWorkDirError as e:
        logger.error(f"{e}; choose another work directory with -w")
        return 1
    except OSError as e:
        logger.error(f"Cannot prepare work directory {settings.work_dir}: {e}")
        return 1

    handler = attach_bundle_log(bundle_root)
    try:
        context = CollectionContext(bundle_root, host, settings, socket.gethostname())
        collector = Collector(modules if modules is not None else select_modules(settings), context)
        collector.run()
        collector.write_summary()
        logger.info("Diagnostic collection finished")
    finally:
        detach_bundle_log(handler)

    try:
        create_archive(bundle_root, settings.archive)
    except (OSError, tarfile.TarError) as e:
        logger.error(f"Failed to create archive {settings.archive}: {e}")
        logger.error(f"Collected files are left in {bundle_root}")
        return 1

    if not settings.keep_tree:
        remove_bundle(bundle_root)

    logger.info(f"Diagnostic archive saved to: {settings.archive}")
    return 0


def show_version():
    """Show version information."""
    from . import __version__
    print(f"diagsnap version {__version__}")
    print("Host diagnostic snapshot tool for offline support analysis")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    args = parse_arguments(argv)

    if args.version:
        show_version()
        return 0

    if args.write_config:
        write_default_config(args.write_config)
        return 0

    try:
        settings = apply_arguments(load_settings(args.config), args)
        return collect(settings)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("\nOperation cancelled by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
