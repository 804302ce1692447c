"""Tests for runtime settings."""
from __future__ import annotations

import pytest

from mindevc import __version__
from mindevc.settings import Settings, create_settings_from_env


class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.config_file is None
        assert settings.cache_dir is None
        assert settings.http_timeout_s == 60.0
        assert settings.user_agent == f"mindevc/{__version__}"

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_timeout_must_be_positive(self, timeout):
        with pytest.raises(ValueError, match="http_timeout_s"):
            Settings(http_timeout_s=timeout)

    def test_user_agent_required(self):
        with pytest.raises(ValueError, match="user_agent"):
            Settings(user_agent="  ")

    def test_blank_cache_dir_rejected(self):
        with pytest.raises(ValueError, match="cache_dir"):
            Settings(cache_dir="")


class TestSettingsFromEnv:

    def test_empty_environment(self):
        assert create_settings_from_env() == Settings()

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("MINDEVC_CONFIG", "/etc/mindevc.yaml")
        monkeypatch.setenv("MINDEVC_CACHE_DIR", "/var/cache/mindevc")
        monkeypatch.setenv("MINDEVC_HTTP_TIMEOUT", "12.5")
        monkeypatch.setenv("MINDEVC_USER_AGENT", "devcontainer-setup/2")

        settings = create_settings_from_env()

        assert settings.config_file == "/etc/mindevc.yaml"
        assert settings.cache_dir == "/var/cache/mindevc"
        assert settings.http_timeout_s == 12.5
        assert settings.user_agent == "devcontainer-setup/2"

    def test_bad_timeout(self, monkeypatch):
        monkeypatch.setenv("MINDEVC_HTTP_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="MINDEVC_HTTP_TIMEOUT must be a number"):
            create_settings_from_env()

    def test_fresh_instance_each_call(self):
        assert create_settings_from_env() is not create_settings_from_env()
