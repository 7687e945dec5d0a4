"""Tests for the configuration loader module."""

import json
import os
import tempfile
from pathlib import Path

import pytest
import yaml

from dnssd_browser.config.loader import ConfigLoader, load_config_from_file
from dnssd_browser.config.schema import AppConfig


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove browser overrides inherited from the environment."""
    for key in list(os.environ):
        if key.startswith("DNSSD_BROWSER_"):
            monkeypatch.delenv(key)


class TestConfigLoader:
    """Test ConfigLoader functionality."""

    def test_load_default_config(self):
        """Test loading default configuration without file."""
        loader = ConfigLoader()
        config = loader.load_config()

        assert isinstance(config, AppConfig)
        assert config.browser.type is None
        assert config.transport.port == 5353
        assert config.logging.level == "INFO"
        assert loader.get_config() is config

    def test_load_yaml_config(self):
        """Test loading configuration from YAML file."""
        yaml_content = """
browser:
  type: ipp
  txt:
    rp: ipp
    secure: true

discovery:
  refresh_interval: 30
  expire_interval: 2.5

logging:
  level: DEBUG
  format: simple
"""

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write(yaml_content)
            config_file = f.name

        try:
            config = ConfigLoader(config_file).load_config()

            assert config.browser.type == "ipp"
            assert config.browser.protocol == "tcp"
            assert config.browser.txt == {"rp": "ipp", "secure": True}
            assert config.discovery.refresh_interval == 30
            assert config.discovery.expire_interval == 2.5
            assert config.logging.level == "DEBUG"
            assert config.logging.format == "simple"
            assert config.transport.port == 5353
        finally:
            os.unlink(config_file)

    def test_load_json_config(self, tmp_path):
        """Test loading configuration from JSON file."""
        config_file = tmp_path / "browser.json"
        config_file.write_text(
            json.dumps(
                {
                    "browser": {"type": "http", "protocol": "tcp"},
                    "web": {"enabled": True, "port": 8181},
                }
            )
        )

        config = ConfigLoader(str(config_file)).load_config()

        assert config.browser.type == "http"
        assert config.web.enabled is True
        assert config.web.port == 8181
        assert config.web.bind_address == "127.0.0.1"

    def test_config_file_without_extension(self, tmp_path):
        config_file = tmp_path / "browser"
        config_file.write_text(yaml.safe_dump({"browser": {"type": "ssh"}}))

        config = ConfigLoader(str(config_file)).load_config()
        assert config.browser.type == "ssh"

    def test_shipped_default_config(self):
        default_file = Path(__file__).parents[2] / "config" / "default.yaml"

        config = ConfigLoader(str(default_file)).load_config()

        assert config == ConfigLoader().load_config()

    def test_config_file_not_found(self):
        loader = ConfigLoader("/nonexistent/browser.yaml")
        with pytest.raises(FileNotFoundError):
            loader.load_config()

    def test_invalid_value_rejected(self, tmp_path):
        config_file = tmp_path / "browser.yaml"
        config_file.write_text("browser:\n  protocol: sctp\n")

        with pytest.raises(ValueError, match="Invalid protocol"):
            ConfigLoader(str(config_file)).load_config()

    def test_unknown_section_rejected(self, tmp_path):
        config_file = tmp_path / "browser.yaml"
        config_file.write_text("cache:\n  max_size_mb: 10\n")

        with pytest.raises(ValueError, match="Unknown configuration sections"):
            ConfigLoader(str(config_file)).load_config()

    def test_unknown_key_rejected(self, tmp_path):
        config_file = tmp_path / "browser.yaml"
        config_file.write_text("transport:\n  workers: 4\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            ConfigLoader(str(config_file)).load_config()

    def test_empty_file_uses_defaults(self, tmp_path):
        config_file = tmp_path / "browser.yaml"
        config_file.write_text("")

        config = ConfigLoader(str(config_file)).load_config()
        assert config.browser.type is None

    def test_txt_pattern_replaced_not_merged(self):
        loader = ConfigLoader()
        merged = loader._merge_configs(
            {"browser": {"txt": {"rp": "ipp"}, "type": "ipp"}},
            {"browser": {"txt": {"secure": True}}},
        )
        assert merged["browser"] == {"txt": {"secure": True}, "type": "ipp"}


class TestEnvironmentOverrides:
    """Test DNSSD_BROWSER_* environment overrides."""

    def test_browser_overrides(self, monkeypatch):
        monkeypatch.setenv("DNSSD_BROWSER_BROWSER_TYPE", "airplay")
        monkeypatch.setenv("DNSSD_BROWSER_BROWSER_PROTOCOL", "udp")
        monkeypatch.setenv("DNSSD_BROWSER_BROWSER_SUBTYPES", "printer, scanner")

        config = ConfigLoader().load_config()

        assert config.browser.type == "airplay"
        assert config.browser.protocol == "udp"
        assert config.browser.subtypes == ["printer", "scanner"]

    def test_numeric_instance_name_stays_text(self, monkeypatch):
        monkeypatch.setenv("DNSSD_BROWSER_BROWSER_NAME", "1234")

        config = ConfigLoader().load_config()
        assert config.browser.name == "1234"

    def test_typed_overrides(self, monkeypatch):
        monkeypatch.setenv("DNSSD_BROWSER_TRANSPORT_MULTICAST_LOOPBACK", "false")
        monkeypatch.setenv("DNSSD_BROWSER_DISCOVERY_EXPIRE_INTERVAL", "0.5")
        monkeypatch.setenv("DNSSD_BROWSER_WEB_PORT", "9090")
        monkeypatch.setenv("DNSSD_BROWSER_LOGGING_EVENT_LOG_FILE", "/tmp/events.log")

        config = ConfigLoader().load_config()

        assert config.transport.multicast_loopback is False
        assert config.discovery.expire_interval == 0.5
        assert config.web.port == 9090
        assert config.logging.event_log_file == "/tmp/events.log"

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "browser.yaml"
        config_file.write_text("browser:\n  type: http\n")
        monkeypatch.setenv("DNSSD_BROWSER_BROWSER_TYPE", "ipp")

        config, loader = load_config_from_file(str(config_file))

        assert config.browser.type == "ipp"
        assert loader.config_file == str(config_file)

    def test_unrelated_variables_ignored(self, monkeypatch):
        monkeypatch.setenv("DNSSD_BROWSER_CACHE_SIZE", "10")
        monkeypatch.setenv("DNSSD_BROWSER_", "x")

        config = ConfigLoader().load_config()
        assert isinstance(config, AppConfig)
