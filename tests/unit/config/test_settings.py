"""Tests for configuration loading."""

import pytest

from rmq_manage.config.platform_dirs import get_builtin_templates_location, get_config_location
from rmq_manage.config.settings import load_config
from rmq_manage.domain.base.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point config discovery at an empty directory and clear overrides."""
    monkeypatch.setenv("RMQ_MANAGE_CONFIG_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for name in ("RMQ_MANAGE_USERNAME", "RMQ_MANAGE_PASSWORD", "RMQ_MANAGE_BROKER__API_URL"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestLoadConfig:
    """Dynaconf settings validated into AppConfig."""

    def test_defaults(self):
        """Without any source, schema defaults apply."""
        config = load_config()

        assert config.broker.api_url == "http://localhost:15672/api"
        assert config.broker.credential_exchange == ".manage.credentials"
        assert config.broker.reserved_exchange_prefixes == ["amq."]
        assert config.broker.request_timeout is None
        assert config.logging.level == "INFO"
        assert config.templates.extra_dir is None

    def test_log_dir_defaults_beside_config_dir(self, monkeypatch, tmp_path):
        """Without an override, logs go to a directory next to the config directory."""
        monkeypatch.delenv("RMQ_MANAGE_LOG_DIR", raising=False)

        assert load_config().logging.log_dir == str(tmp_path.parent / "logs")

    def test_log_dir_from_environment(self, monkeypatch, tmp_path):
        """RMQ_MANAGE_LOG_DIR relocates the default log directory."""
        monkeypatch.setenv("RMQ_MANAGE_LOG_DIR", str(tmp_path / "var"))

        assert load_config().logging.log_dir == str(tmp_path / "var")

    def test_settings_file(self, tmp_path):
        """Values are read from an explicit YAML file."""
        settings = tmp_path / "custom.yaml"
        settings.write_text(
            "broker:\n"
            "  api_url: http://rabbit:15672/api\n"
            "  request_timeout: 5\n"
            "logging:\n"
            "  level: DEBUG\n"
        )

        config = load_config(str(settings))

        assert config.broker.api_url == "http://rabbit:15672/api"
        assert config.broker.request_timeout == 5
        assert config.logging.level == "DEBUG"

    def test_default_file_location(self, tmp_path):
        """rmq_manage.yaml in the config directory is picked up."""
        (tmp_path / "rmq_manage.yaml").write_text("templates:\n  extra_dir: /srv/templates\n")

        assert load_config().templates.extra_dir == "/srv/templates"

    def test_flat_credentials_from_environment(self, monkeypatch):
        """RMQ_MANAGE_USERNAME and RMQ_MANAGE_PASSWORD fill the broker section."""
        monkeypatch.setenv("RMQ_MANAGE_USERNAME", "admin")
        monkeypatch.setenv("RMQ_MANAGE_PASSWORD", "s3cret")

        config = load_config()

        assert (config.broker.username, config.broker.password) == ("admin", "s3cret")

    def test_missing_explicit_file(self, tmp_path):
        """An explicit file that does not exist is a configuration error."""
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "absent.yaml"))

    def test_invalid_values(self, tmp_path):
        """Schema violations become ConfigurationError."""
        settings = tmp_path / "bad.yaml"
        settings.write_text("broker:\n  request_timeout: soon\n")

        with pytest.raises(ConfigurationError):
            load_config(str(settings))


@pytest.mark.unit
class TestPlatformDirs:
    """Directory discovery."""

    def test_config_dir_from_environment(self, tmp_path):
        assert get_config_location() == tmp_path

    def test_builtin_templates_ship_with_package(self):
        assert (get_builtin_templates_location() / "retry-system.yaml").is_file()
