"""
Tests for configuration loading
"""

import pytest

from ..config_loader import (
    ConfigError,
    Settings,
    _substitute_env_vars,
    app_url_key,
    collect_app_urls,
    load_config,
)
from ..tools.event_filter import DEFAULT_EVENTS

GLOBAL_URL = "https://hooks.slack.com/services/T000/B000/XXX"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate tests from PM2_SLACK_* variables in the host environment"""
    import os

    for key in list(os.environ):
        if key.startswith("PM2_SLACK_"):
            monkeypatch.delenv(key)


class TestLoadConfig:
    """Tests for environment-based loading"""

    def test_missing_url_is_fatal(self):
        with pytest.raises(ConfigError, match="PM2_SLACK_URL"):
            load_config()

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)

        settings = load_config()

        assert settings.url == GLOBAL_URL
        assert settings.events == list(DEFAULT_EVENTS)
        assert settings.filter == []
        assert settings.mentions == []
        assert settings.debounce_ms == 2000
        assert settings.suppress_ms == 2000
        assert settings.ingest_mode == "stream"

    def test_comma_lists(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)
        monkeypatch.setenv("PM2_SLACK_EVENTS", " exit, online ,log,")
        monkeypatch.setenv("PM2_SLACK_FILTER", "api,worker")
        monkeypatch.setenv("PM2_SLACK_MENTIONS", "U1, U2")

        settings = load_config()

        assert settings.events == ["exit", "online", "log"]
        assert settings.filter == ["api", "worker"]
        assert settings.mentions == ["U1", "U2"]

    def test_blank_events_fall_back_to_defaults(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)
        monkeypatch.setenv("PM2_SLACK_EVENTS", "")

        assert load_config().events == list(DEFAULT_EVENTS)

    def test_per_app_webhook(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)
        monkeypatch.setenv("PM2_SLACK_URL_MY_API", "https://hooks.slack.com/services/api")

        settings = load_config()

        assert settings.webhook_url_for("my-api") == "https://hooks.slack.com/services/api"
        assert settings.webhook_url_for("worker") == GLOBAL_URL

    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)
        monkeypatch.setenv("PM2_SLACK_DEBOUNCE_MS", "soon")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config()

    def test_timezone(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)
        monkeypatch.setenv("PM2_SLACK_TIMEZONE", "Europe/Istanbul")

        assert load_config().timezone == "Europe/Istanbul"

    def test_unknown_timezone(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)
        monkeypatch.setenv("PM2_SLACK_TIMEZONE", "Mars/Olympus")

        with pytest.raises(ConfigError, match="Unknown timezone"):
            load_config()

    def test_settings_are_frozen(self, monkeypatch):
        monkeypatch.setenv("PM2_SLACK_URL", GLOBAL_URL)
        settings = load_config()

        with pytest.raises(Exception):
            settings.url = "https://example.com"


class TestYamlConfig:
    """Tests for YAML file loading"""

    def test_yaml_with_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SLACK_HOOK", GLOBAL_URL)
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "url: ${SLACK_HOOK}\n"
            "debounce_ms: ${DEBOUNCE:-500}\n"
            "filter: [api]\n"
            "app_urls:\n"
            "  my-api: https://hooks.slack.com/services/api\n"
        )

        settings = load_config(str(config_file))

        assert settings.url == GLOBAL_URL
        assert settings.debounce_ms == 500
        assert settings.filter == ["api"]
        assert settings.webhook_url_for("my-api") == "https://hooks.slack.com/services/api"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "absent.yaml"))

    def test_non_mapping(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_config(str(config_file))


class TestHelpers:
    """Tests for helper functions"""

    def test_app_url_key(self):
        assert app_url_key("my-api") == "MY_API"
        assert app_url_key("worker") == "WORKER"

    def test_collect_app_urls(self):
        environ = {
            "PM2_SLACK_URL": GLOBAL_URL,
            "PM2_SLACK_URL_API": "https://a",
            "PM2_SLACK_URL_EMPTY": "",
            "OTHER": "x",
        }

        assert collect_app_urls(environ) == {"API": "https://a"}

    def test_substitute_env_vars(self, monkeypatch):
        monkeypatch.setenv("HOOK", "https://h")

        result = _substitute_env_vars({"a": "${HOOK}", "b": ["${NOPE:-x}"], "c": 3})

        assert result == {"a": "https://h", "b": ["x"], "c": 3}

    def test_direct_settings(self):
        settings = Settings(url=GLOBAL_URL, events="", mentions="U1")

        assert settings.events == list(DEFAULT_EVENTS)
        assert settings.mentions == ["U1"]
