#!/usr/bin/env python3
"""
Configuration handling for the diagnostic snapshot tool.

Settings come from three layers, later layers winning:
the INI config file, DIAGSNAP_* environment variables, then command line flags.
"""

import os
import logging
import configparser
from typing import Dict, List, Optional

logger = logging.getLogger("diagsnap.config")

# Constants
TOOL_NAME = "diagsnap"
CONFIG_DIR = "/etc/diagsnap"
DEFAULT_CONFIG_PATH = os.path.join(CONFIG_DIR, "diagsnap.conf")
DEFAULT_WORK_DIR = "/tmp/diagsnap"
DEFAULT_ARCHIVE = "/tmp/diagsnap.tar.gz"
DEFAULT_MIN_FREE_MB = 100
DEFAULT_TIMEOUT = 60
DEFAULT_PRODUCT_NAME = "enterprise"
DEFAULT_PRODUCT_HOME = "/opt/enterprise"

MODULE_NAMES = ["resources", "system", "network", "enterprise", "logs"]

DEFAULT_CONFIG = """# Default configuration for diagsnap
# This file controls which modules run and where the bundle is written

# Module enablement (true/false)
[modules]
resources = true
system = true
network = true
enterprise = true
logs = true

# Bundle directory and final archive
[output]
work_dir = /tmp/diagsnap
archive = /tmp/diagsnap.tar.gz
min_free_mb = 100
keep_tree = false

# Per-command timeout in seconds
[commands]
timeout = 60

# Product snapshot
[enterprise]
product_name = enterprise
home = /opt/enterprise
# Defaults to <home>/logs
log_dir =
package = enterprise
# Glob patterns relative to home, comma separated
files = conf/*.conf, conf/*.properties, conf/*.xml, version*
# Directories listed with find; empty means the product home only
find_roots =
# Only archive product logs modified in the last N days (0 = all)
max_log_age_days = 7
"""


class ConfigError(Exception):
    """Raised when the configuration cannot be used."""


class Settings:
    """Resolved settings for one collection run."""

    def __init__(self):
        self.modules: Dict[str, bool] = {name: True for name in MODULE_NAMES}
        self.work_dir = DEFAULT_WORK_DIR
        self.archive = DEFAULT_ARCHIVE
        self.min_free_mb = DEFAULT_MIN_FREE_MB
        self.keep_tree = False
        self.timeout = DEFAULT_TIMEOUT
        self.product_name = DEFAULT_PRODUCT_NAME
        self.product_home = DEFAULT_PRODUCT_HOME
        self.product_log_dir: Optional[str] = None
        self.product_package = DEFAULT_PRODUCT_NAME
        self.product_files: List[str] = ["conf/*.conf", "conf/*.properties", "conf/*.xml", "version*"]
        self.find_roots: List[str] = []
        self.max_log_age_days: Optional[int] = 7
        self.source = None

    @property
    def log_dir(self) -> str:
        """Product log directory, defaulting to <home>/logs."""
        return self.product_log_dir or os.path.join(self.product_home, "logs")

    @property
    def search_roots(self) -> List[str]:
        return self.find_roots or [self.product_home]

    def is_enabled(self, module_name: str) -> bool:
        return self.modules.get(module_name, True)


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _get_int(parser: configparser.ConfigParser, section: str, option: str, fallback: int) -> int:
    try:
        return parser.getint(section, option, fallback=fallback)
    except ValueError:
        raise ConfigError(f"[{section}] {option} must be an integer, got "
                          f"{parser.get(section, option)!r}")


def _get_bool(parser: configparser.ConfigParser, section: str, option: str, fallback: bool) -> bool:
    try:
        return parser.getboolean(section, option, fallback=fallback)
    except ValueError:
        raise ConfigError(f"[{section}] {option} must be true or false, got "
                          f"{parser.get(section, option)!r}")


def load_settings(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """
    Build settings from the config file and the environment.

    Args:
        path: Config file to read. Defaults to $DIAGSNAP_CONFIG, then
              /etc/diagsnap/diagsnap.conf. A missing default file is not an
              error; a missing explicit file is.
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Resolved Settings
    """
    env = os.environ if environ is None else environ
    settings = Settings()

    explicit = path or env.get("DIAGSNAP_CONFIG")
    config_path = explicit or DEFAULT_CONFIG_PATH

    parser = configparser.ConfigParser()
    if os.path.exists(config_path):
        try:
            parser.read(config_path)
        except configparser.Error as e:
            raise ConfigError(f"Cannot parse {config_path}: {e}")
        settings.source = config_path
        logger.debug(f"Loaded configuration from {config_path}")
    elif explicit:
        raise ConfigError(f"Config file not found: {config_path}")

    if parser.has_section("modules"):
        for name in parser.options("modules"):
            settings.modules[name] = _get_bool(parser, "modules", name, True)

    settings.work_dir = parser.get("output", "work_dir", fallback=settings.work_dir) or settings.work_dir
    settings.archive = parser.get("output", "archive", fallback=settings.archive) or settings.archive
    settings.min_free_mb = _get_int(parser, "output", "min_free_mb", settings.min_free_mb)
    settings.keep_tree = _get_bool(parser, "output", "keep_tree", settings.keep_tree)

    settings.timeout = _get_int(parser, "commands", "timeout", settings.timeout)

    settings.product_name = parser.get("enterprise", "product_name", fallback=settings.product_name)
    settings.product_home = parser.get("enterprise", "home", fallback=settings.product_home)
    settings.product_log_dir = parser.get("enterprise", "log_dir", fallback="") or None
    settings.product_package = parser.get("enterprise", "package", fallback=settings.product_name)
    if parser.has_option("enterprise", "files"):
        settings.product_files = _split_list(parser.get("enterprise", "files"))
    if parser.has_option("enterprise", "find_roots"):
        settings.find_roots = _split_list(parser.get("enterprise", "find_roots"))
    max_age = _get_int(parser, "enterprise", "max_log_age_days", settings.max_log_age_days or 0)
    settings.max_log_age_days = max_age if max_age > 0 else None

    # Environment overrides
    if env.get("DIAGSNAP_PRODUCT_HOME"):
        settings.product_home = env["DIAGSNAP_PRODUCT_HOME"]
    if env.get("DIAGSNAP_WORK_DIR"):
        settings.work_dir = env["DIAGSNAP_WORK_DIR"]
    if env.get("DIAGSNAP_ARCHIVE"):
        settings.archive = env["DIAGSNAP_ARCHIVE"]

    if settings.timeout <= 0:
        raise ConfigError("[commands] timeout must be positive")

    return settings


def write_default_config(path: str) -> str:
    """Write the default configuration file and return its path."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w") as f:
        f.write(DEFAULT_CONFIG)
    logger.info(f"Created file: {path}")
    return path
