"""Tests for feedback_assistant.config."""

from pathlib import Path

import pytest

from feedback_assistant.assistant import ConfigurationError
from feedback_assistant.config import (
    DEFAULT_TIMEOUT,
    AssistantSettings,
    load_config_file,
    load_settings,
)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "endpoint_url: https://file.example.test/functions/v1/ai-helper\n"
        "anon_key: file-key\n"
        "timeout: 30\n"
        "pro: true\n",
        encoding="utf-8",
    )
    return path


def test_defaults_when_nothing_configured(tmp_path):
    settings = load_settings(tmp_path / "missing.yaml", environ={})
    assert settings == AssistantSettings()
    assert settings.timeout == DEFAULT_TIMEOUT


def test_file_values(config_file):
    settings = load_settings(config_file, environ={})
    assert settings.endpoint_url == "https://file.example.test/functions/v1/ai-helper"
    assert settings.anon_key == "file-key"
    assert settings.timeout == 30.0
    assert settings.pro is True


def test_env_overrides_file(config_file):
    settings = load_settings(
        config_file,
        environ={"FEEDBACK_ASSISTANT_URL": "https://env.example.test/ai", "FEEDBACK_ASSISTANT_PRO": "no"},
    )
    assert settings.endpoint_url == "https://env.example.test/ai"
    assert settings.anon_key == "file-key"
    assert settings.pro is False


def test_explicit_overrides_win(config_file):
    settings = load_settings(
        config_file,
        environ={"FEEDBACK_ASSISTANT_TIMEOUT": "5"},
        timeout=12.5,
        token_path=Path("/tmp/token"),
        pro=None,
    )
    assert settings.timeout == 12.5
    assert settings.token_path == Path("/tmp/token")
    assert settings.pro is True


def test_invalid_timeout(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "missing.yaml", environ={"FEEDBACK_ASSISTANT_TIMEOUT": "soon"})


def test_non_positive_timeout(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "missing.yaml", environ={"FEEDBACK_ASSISTANT_TIMEOUT": "0"})


def test_invalid_bool(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "missing.yaml", environ={"FEEDBACK_ASSISTANT_PRO": "maybe"})


def test_config_must_be_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config_file(path)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("endpoint_url: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config_file(path)


def test_empty_file_is_empty_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config_file(path) == {}


def test_require_endpoint():
    with pytest.raises(ConfigurationError):
        AssistantSettings(anon_key="k").require_endpoint()
    with pytest.raises(ConfigurationError):
        AssistantSettings(endpoint_url="https://x.test").require_endpoint()
    AssistantSettings(endpoint_url="https://x.test", anon_key="k").require_endpoint()
