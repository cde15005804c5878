"""
Configuration management for oltshell.

Handles loading config from ~/.oltshell/config.yaml and providing
default values for all settings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from oltshell.core.vendor_tables import VendorTables, get_default_tables


# Default paths
DEFAULT_BASE_DIR = Path.home() / ".oltshell"
DEFAULT_CONFIG_FILE = DEFAULT_BASE_DIR / "config.yaml"
DEFAULT_LOG_DIR = DEFAULT_BASE_DIR / "logs"


@dataclass
class SessionDefaults:
    """Default session settings (can be overridden per device or on the command line)."""

    timeout: float = 30.0
    port: int = 22
    liveness_timeout: float = 5.0
    disable_pager: bool = True
    legacy_mode: bool = False


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    file: Optional[Path] = None


@dataclass
class Config:
    """Main configuration container."""

    base_dir: Path = DEFAULT_BASE_DIR
    config_file: Path = DEFAULT_CONFIG_FILE
    log_dir: Path = DEFAULT_LOG_DIR

    session: SessionDefaults = field(default_factory=SessionDefaults)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Optional YAML extending the built-in prompt/pager/error tables
    vendor_tables_file: Optional[Path] = None

    # Optional default inventory for `oltshell validate`
    inventory_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to config file. If None, uses default location.
                         Can also be set via OLTSHELL_CONFIG env var.

        Returns:
            Config instance with values from file merged with defaults.
        """
        if config_path is None:
            config_path = Path(
                os.environ.get("OLTSHELL_CONFIG", str(DEFAULT_CONFIG_FILE))
            )
        config_path = Path(config_path)

        config = cls()
        config.config_file = config_path

        # If config file doesn't exist, return defaults
        if not config_path.exists():
            return config

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config YAML: {e}")

        if "session" in data:
            sess = data["session"] or {}
            config.session = SessionDefaults(
                timeout=float(sess.get("timeout", 30.0)),
                port=int(sess.get("port", 22)),
                liveness_timeout=float(sess.get("liveness_timeout", 5.0)),
                disable_pager=bool(sess.get("disable_pager", True)),
                legacy_mode=bool(sess.get("legacy_mode", False)),
            )

        if "logging" in data:
            log_data = data["logging"] or {}
            log_file = log_data.get("file")
            config.logging = LoggingConfig(
                level=log_data.get("level", "INFO"),
                file=Path(log_file).expanduser() if log_file else None,
            )

        if data.get("vendor_tables"):
            config.vendor_tables_file = Path(data["vendor_tables"]).expanduser()

        if data.get("inventory"):
            config.inventory_file = Path(data["inventory"]).expanduser()

        return config

    def load_vendor_tables(self) -> VendorTables:
        """Vendor tables from vendor_tables_file, or the built-in defaults."""
        if self.vendor_tables_file is None:
            return get_default_tables()
        return VendorTables.from_yaml(self.vendor_tables_file)

    def ensure_directories(self):
        """Create required directories if they don't exist."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def save_default_config(self):
        """Save a default config file if one doesn't exist."""
        if self.config_file.exists():
            return

        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        default_config = f"""\
# oltshell Configuration

# =============================================================================
# Session Defaults
# =============================================================================

session:
  timeout: 30              # Seconds to wait for a prompt
  port: 22
  liveness_timeout: 5      # Bound for the blank-line probe
  disable_pager: true      # Send the vendor pager-disable command after login
  legacy_mode: false       # Allow ssh-rsa only firmware

# =============================================================================
# Vendor Tables / Inventory
# =============================================================================

# vendor_tables: ~/.oltshell/vendor_tables.yaml
# inventory: ~/.oltshell/inventory.yaml

# =============================================================================
# Logging
# =============================================================================

logging:
  level: INFO              # DEBUG, INFO, WARNING, ERROR
  file: {self.log_dir / 'oltshell.log'}
"""

        with open(self.config_file, "w") as f:
            f.write(default_config)


# Singleton instance
_config: Optional[Config] = None


def get_config(reload: bool = False) -> Config:
    """
    Get the global configuration instance.

    Args:
        reload: Force reload from file.

    Returns:
        Config instance.
    """
    global _config

    if _config is None or reload:
        _config = Config.load()

    return _config
