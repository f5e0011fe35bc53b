"""Unit tests for configuration management."""

import re

import pytest
from unittest.mock import patch

from vsphere_clone.config import (
    DEFAULT_BOOTSTRAP_OPTIONS, AppConfig, ConfigLoader, config_loader,
    default_vm_name, load_options_file, merge_bootstrap_options
)
from vsphere_clone.exceptions import ConfigurationError


ENV_VARS = [
    "VSPHERE_CLONE_HOST", "VSPHERE_CLONE_USER", "VSPHERE_CLONE_PASSWORD",
    "VSPHERE_CLONE_PORT", "VSPHERE_CLONE_INSECURE", "VSPHERE_CLONE_DATACENTER",
    "VSPHERE_CLONE_VM_FOLDER", "VSPHERE_CLONE_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestAppConfig:
    """Test AppConfig Pydantic model."""

    def test_app_config_defaults(self):
        """Test AppConfig default values."""
        config = AppConfig()
        assert config.vcenter_host is None
        assert config.vcenter_port == 443
        assert config.insecure is False
        assert config.log_level == "INFO"
        assert config.bootstrap_options == {}

    def test_log_level_normalized(self):
        """Test log level is upper-cased."""
        assert AppConfig(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test an unknown log level is rejected."""
        with pytest.raises(ValueError, match="log_level must be one of"):
            AppConfig(log_level="LOUD")

    def test_invalid_port(self):
        """Test out-of-range ports are rejected."""
        with pytest.raises(ValueError):
            AppConfig(vcenter_port=70000)

    def test_unknown_field_rejected(self):
        """Test unknown fields are rejected."""
        with pytest.raises(ValueError):
            AppConfig(ssh_key_path="/key")

    def test_password_not_in_repr(self):
        """Test the vCenter password is kept out of repr."""
        config = AppConfig(vcenter_password="s3cret")
        assert "s3cret" not in repr(config)


class TestBootstrapDefaults:
    """Test default bootstrap options and merging."""

    def test_defaults(self):
        """Test the defaults applied under every clone."""
        assert DEFAULT_BOOTSTRAP_OPTIONS["use_linked_clone"] is True
        assert DEFAULT_BOOTSTRAP_OPTIONS["ssh"] == {"user": "root", "paranoid": False, "port": 22}
        assert DEFAULT_BOOTSTRAP_OPTIONS["customization_spec"] == {"domain": "local"}

    def test_nested_mappings_merge(self):
        """Test nested mappings are merged key by key."""
        merged = merge_bootstrap_options(
            DEFAULT_BOOTSTRAP_OPTIONS,
            {"ssh": {"password": "pw"}, "customization_spec": {"hostname": "web-01"}},
        )
        assert merged["ssh"] == {"user": "root", "paranoid": False, "port": 22, "password": "pw"}
        assert merged["customization_spec"] == {"domain": "local", "hostname": "web-01"}
        assert merged["use_linked_clone"] is True

    def test_named_spec_replaces_default_mapping(self):
        """Test a stored spec name replaces the default inline spec."""
        merged = merge_bootstrap_options(
            DEFAULT_BOOTSTRAP_OPTIONS, {"customization_spec": "stored-linux"}
        )
        assert merged["customization_spec"] == "stored-linux"

    def test_defaults_not_mutated(self):
        """Test merging leaves the defaults untouched."""
        merge_bootstrap_options(DEFAULT_BOOTSTRAP_OPTIONS, {"ssh": {"user": "admin"}})
        assert DEFAULT_BOOTSTRAP_OPTIONS["ssh"]["user"] == "root"

    def test_none_overrides(self):
        """Test None overrides return a copy of the defaults."""
        merged = merge_bootstrap_options(DEFAULT_BOOTSTRAP_OPTIONS, None)
        assert merged == DEFAULT_BOOTSTRAP_OPTIONS
        assert merged is not DEFAULT_BOOTSTRAP_OPTIONS

    def test_config_layers(self):
        """Test configured options sit between defaults and call overrides."""
        config = AppConfig(bootstrap_options={"use_linked_clone": False, "datastore": "ds-1"})
        merged = config.merged_bootstrap_options({"datastore": "ds-2"})
        assert merged["use_linked_clone"] is False
        assert merged["datastore"] == "ds-2"
        assert merged["ssh"]["user"] == "root"

    def test_default_vm_name(self):
        """Test generated names carry the prefix and eight hex digits."""
        name = default_vm_name("web")
        assert re.fullmatch(r"web-[0-9a-f]{8}", name)
        assert default_vm_name("web") != name


class TestConfigLoader:
    """Test ConfigLoader class."""

    def test_load_config_from_file(self, tmp_path):
        """Test load_config reads an explicit file."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "vcenter_host: vcenter.example.com\n"
            "vcenter_user: administrator@vsphere.local\n"
            "datacenter: DC1\n"
            "log_level: DEBUG\n"
            "bootstrap_options:\n"
            "  resource_pool: pool-A\n"
        )
        config = ConfigLoader().load_config(str(path))
        assert config.vcenter_host == "vcenter.example.com"
        assert config.datacenter == "DC1"
        assert config.log_level == "DEBUG"
        assert config.bootstrap_options == {"resource_pool": "pool-A"}

    def test_load_config_with_empty_file(self, tmp_path):
        """Test an empty file yields defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("")
        config = ConfigLoader().load_config(str(path))
        assert config.vcenter_port == 443

    def test_load_config_with_invalid_yaml(self, tmp_path):
        """Test invalid YAML raises ConfigurationError."""
        path = tmp_path / "config.yaml"
        path.write_text("vcenter_host: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Failed to parse configuration file"):
            ConfigLoader().load_config(str(path))

    def test_load_config_with_invalid_format(self, tmp_path):
        """Test a YAML list raises ConfigurationError."""
        path = tmp_path / "config.yaml"
        path.write_text("- item1\n- item2\n")
        with pytest.raises(ConfigurationError, match="Invalid configuration format"):
            ConfigLoader().load_config(str(path))

    def test_load_config_with_unknown_fields(self, tmp_path):
        """Test unknown fields raise ConfigurationError."""
        path = tmp_path / "config.yaml"
        path.write_text("vcenter_host: vc\nunknown_field: value\n")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            ConfigLoader().load_config(str(path))

    def test_load_config_file_not_found(self):
        """Test a missing explicit file raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            ConfigLoader().load_config("/nonexistent/path/config.yaml")

    def test_load_config_without_any_file(self):
        """Test defaults are used when no file exists."""
        with patch('os.path.exists', return_value=False):
            config = config_loader.load_config()
        assert isinstance(config, AppConfig)
        assert config.vcenter_host is None


class TestEnvironmentOverrides:
    """Test environment variable overrides."""

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """Test environment variables take precedence over the file."""
        path = tmp_path / "config.yaml"
        path.write_text("vcenter_host: from-file\nvcenter_port: 443\n")
        monkeypatch.setenv("VSPHERE_CLONE_HOST", "from-env")
        monkeypatch.setenv("VSPHERE_CLONE_PORT", "8443")
        monkeypatch.setenv("VSPHERE_CLONE_INSECURE", "yes")
        monkeypatch.setenv("VSPHERE_CLONE_VM_FOLDER", "clones")

        config = ConfigLoader().load_config(str(path))
        assert config.vcenter_host == "from-env"
        assert config.vcenter_port == 8443
        assert config.insecure is True
        assert config.vm_folder == "clones"

    def test_invalid_env_value_ignored(self, monkeypatch):
        """Test unparsable values are ignored."""
        monkeypatch.setenv("VSPHERE_CLONE_PORT", "not-a-number")
        monkeypatch.setenv("VSPHERE_CLONE_INSECURE", "maybe")
        with patch('os.path.exists', return_value=False):
            config = ConfigLoader().load_config()
        assert config.vcenter_port == 443
        assert config.insecure is False

    def test_password_from_env(self, monkeypatch):
        """Test the password can come from the environment."""
        monkeypatch.setenv("VSPHERE_CLONE_PASSWORD", "s3cret")
        with patch('os.path.exists', return_value=False):
            config = ConfigLoader().load_config()
        assert config.vcenter_password == "s3cret"


class TestOptionsFile:
    """Test bootstrap options files."""

    def test_load_options_file(self, tmp_path):
        """Test a mapping is returned as is."""
        path = tmp_path / "options.yaml"
        path.write_text(
            "resource_pool: pool-A\n"
            "customization_spec:\n"
            "  domain: example.com\n"
            "  ipsettings:\n"
            "    ip: 10.0.0.5\n"
            "    subnetMask: 255.255.255.0\n"
        )
        data = load_options_file(str(path))
        assert data["resource_pool"] == "pool-A"
        assert data["customization_spec"]["ipsettings"]["subnetMask"] == "255.255.255.0"

    def test_empty_options_file(self, tmp_path):
        """Test an empty options file yields no options."""
        path = tmp_path / "options.yaml"
        path.write_text("")
        assert load_options_file(str(path)) == {}

    def test_options_file_must_be_mapping(self, tmp_path):
        """Test a list document is rejected."""
        path = tmp_path / "options.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_options_file(str(path))

    def test_missing_options_file(self):
        """Test a missing options file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Failed to load options"):
            load_options_file("/nonexistent/options.yaml")
