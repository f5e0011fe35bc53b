"""
Configuration management for vSphere clone operations.

This module handles loading and validating configuration from files and
environment variables, and the default bootstrap options applied to every
clone.
"""

import copy
import os
import secrets
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import ConfigurationError
from .logging import logger

# Applied underneath user-supplied bootstrap options
DEFAULT_BOOTSTRAP_OPTIONS: Dict[str, Any] = {
    "use_linked_clone": True,
    "ssh": {
        "user": "root",
        "paranoid": False,
        "port": 22,
    },
    "customization_spec": {
        "domain": "local",
    },
}

DEFAULT_CONFIG_PATHS = [
    "~/.config/vsphere-clone/config.yaml",
    "/etc/vsphere-clone/config.yaml",
    "config.yaml",
]


def merge_bootstrap_options(
    defaults: Mapping[str, Any], overrides: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    """
    Deep-merge ``overrides`` over ``defaults``.

    Nested mappings are merged key by key. Any other value in ``overrides``,
    including a string ``customization_spec`` naming a stored spec, replaces
    the default outright.
    """
    merged = copy.deepcopy(dict(defaults))
    for key, value in (overrides or {}).items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_bootstrap_options(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def default_vm_name(prefix: str) -> str:
    """Unique VM name such as ``web-3f9a1c2e``."""
    return f"{prefix}-{secrets.token_hex(4)}"


class AppConfig(BaseModel):
    """Application configuration with Pydantic validation.

    Configuration can be loaded from:
    1. Explicit config file path
    2. Default config file locations
    3. Environment variables (highest priority)

    Environment variables:
    - VSPHERE_CLONE_HOST: vCenter host name
    - VSPHERE_CLONE_USER: vCenter user
    - VSPHERE_CLONE_PASSWORD: vCenter password
    - VSPHERE_CLONE_PORT: vCenter HTTPS port
    - VSPHERE_CLONE_INSECURE: Skip TLS certificate verification (true/false)
    - VSPHERE_CLONE_DATACENTER: Restrict inventory lookups to this datacenter
    - VSPHERE_CLONE_VM_FOLDER: Folder receiving new VMs
    - VSPHERE_CLONE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    model_config = ConfigDict(extra="forbid")  # Reject unknown fields

    vcenter_host: Optional[str] = None
    vcenter_user: Optional[str] = None
    vcenter_password: Optional[str] = Field(default=None, repr=False)
    vcenter_port: int = Field(default=443, gt=0, le=65535, description="vCenter port")
    insecure: bool = Field(default=False, description="Skip TLS verification")
    datacenter: Optional[str] = None
    vm_folder: Optional[str] = None
    log_level: str = Field(default="INFO", description="Logging level")

    bootstrap_options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v

    def merged_bootstrap_options(
        self, overrides: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """Defaults, then configured bootstrap options, then ``overrides``."""
        base = merge_bootstrap_options(DEFAULT_BOOTSTRAP_OPTIONS, self.bootstrap_options)
        return merge_bootstrap_options(base, overrides)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value}")


class ConfigLoader:
    """Loads and validates configuration."""

    def __init__(self) -> None:
        self.logger = logger

    def load_config(self, config_path: Optional[str] = None) -> AppConfig:
        """
        Load configuration from file and environment variables.

        Priority (highest to lowest):
        1. Environment variables
        2. Config file (explicit path or default locations)
        3. Default values

        Args:
            config_path: Path to configuration file. If None, looks in default locations.

        Returns:
            AppConfig: Loaded configuration
        """
        if config_path:
            config_data = self._load_data_from_file(config_path)
        else:
            config_data = {}
            for path in DEFAULT_CONFIG_PATHS:
                path = os.path.expanduser(path)
                if os.path.exists(path):
                    self.logger.info(f"Loading configuration from {path}", path=path)
                    config_data = self._load_data_from_file(path)
                    break

            if not config_data:
                self.logger.info(
                    "No configuration file found, using defaults and environment variables"
                )

        config_data = self._apply_env_overrides(config_data)

        try:
            return AppConfig(**config_data)
        except ValueError as e:
            self.logger.error(f"Invalid configuration: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid configuration: {e}")

    def _apply_env_overrides(self, config_data: dict) -> dict:
        """Apply environment variable overrides to config data."""
        env_mappings = {
            "VSPHERE_CLONE_HOST": "vcenter_host",
            "VSPHERE_CLONE_USER": "vcenter_user",
            "VSPHERE_CLONE_PASSWORD": "vcenter_password",
            "VSPHERE_CLONE_PORT": ("vcenter_port", int),
            "VSPHERE_CLONE_INSECURE": ("insecure", _parse_bool),
            "VSPHERE_CLONE_DATACENTER": "datacenter",
            "VSPHERE_CLONE_VM_FOLDER": "vm_folder",
            "VSPHERE_CLONE_LOG_LEVEL": "log_level",
        }

        for env_var, mapping in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is None:
                continue

            if isinstance(mapping, tuple):
                config_key, converter = mapping
                try:
                    config_data[config_key] = converter(env_value)
                except (ValueError, TypeError) as e:
                    self.logger.warning(
                        f"Invalid value for {env_var}, ignoring. Error: {e}",
                        env_var=env_var,
                    )
                    continue
            else:
                config_key = mapping
                config_data[config_key] = env_value

            # Values are not logged; one of them is a password
            self.logger.debug(f"Applied environment override: {env_var}", env_var=env_var)

        return config_data

    def _load_data_from_file(self, path: str) -> dict:
        """Load configuration data from a specific file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(
                f"Failed to parse configuration file {path}: {e}",
                path=path,
                exc_info=True,
            )
            raise ConfigurationError(f"Failed to parse configuration file: {e}")
        except OSError as e:
            self.logger.error(
                f"Failed to load configuration from {path}: {e}",
                path=path,
                exc_info=True,
            )
            raise ConfigurationError(f"Failed to load configuration: {e}")

        if data is None:
            return {}

        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid configuration format in {path}")

        return data


def load_options_file(path: str) -> Dict[str, Any]:
    """Read a YAML document of bootstrap options."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load options from {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Options file {path} must contain a mapping")
    return data


# Global config loader
config_loader = ConfigLoader()
