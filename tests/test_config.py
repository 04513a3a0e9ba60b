"""Tests for Settings and CLI settings overrides."""

from dockwatch.cli.main import build_settings
from dockwatch.config import Settings
from dockwatch.types import ContainerFilter


class TestSettings:
    """Tests for environment-based configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("DOCKWATCH_BUFFER_CAPACITY", "DOCKWATCH_CONTAINER_FILTER"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()

        assert settings.buffer_capacity == 1000
        assert settings.refresh_timeout == 5.0
        assert settings.container_filter is ContainerFilter.RUNNING
        assert settings.tab_wrap is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DOCKWATCH_BUFFER_CAPACITY", "5000")
        monkeypatch.setenv("DOCKWATCH_CONTAINER_FILTER", "all")
        monkeypatch.setenv("DOCKWATCH_WATCH_ALL", "true")

        settings = Settings()

        assert settings.buffer_capacity == 5000
        assert settings.container_filter is ContainerFilter.ALL
        assert settings.watch_all is True

    def test_cli_values_override_env(self, monkeypatch):
        monkeypatch.setenv("DOCKWATCH_TAIL_LINES", "10")
        monkeypatch.setenv("DOCKWATCH_REFRESH_INTERVAL", "9")

        settings = build_settings(tail_lines=250, refresh_interval=None)

        assert settings.tail_lines == 250
        assert settings.refresh_interval == 9.0
