import pytest

from o3_search_mcp.config import ConfigError, Settings


def test_defaults_only_need_api_key():
    settings = Settings.from_env({"OPENAI_API_KEY": "sk-test"})

    assert settings.openai_api_key == "sk-test"
    assert settings.openai_max_retries == 3
    assert settings.openai_api_timeout_ms == 60000
    assert settings.search_context_size == "medium"
    assert settings.reasoning_effort == "medium"
    assert settings.process_timeout_ms == 300000
    assert settings.openai_api_timeout == 60.0
    assert settings.process_timeout == 300.0


def test_overrides_from_environment():
    settings = Settings.from_env({
        "OPENAI_API_KEY": "sk-test",
        "OPENAI_MAX_RETRIES": "5",
        "OPENAI_API_TIMEOUT": "12500",
        "SEARCH_CONTEXT_SIZE": "HIGH",
        "REASONING_EFFORT": "low",
        "PROCESS_TIMEOUT": "1000",
    })

    assert settings.openai_max_retries == 5
    assert settings.openai_api_timeout == 12.5
    assert settings.search_context_size == "high"
    assert settings.reasoning_effort == "low"
    assert settings.process_timeout == 1.0


def test_blank_values_fall_back_to_defaults():
    settings = Settings.from_env({
        "OPENAI_API_KEY": "sk-test",
        "OPENAI_MAX_RETRIES": "  ",
        "SEARCH_CONTEXT_SIZE": "",
    })

    assert settings.openai_max_retries == 3
    assert settings.search_context_size == "medium"


def test_zero_process_timeout_disables_cap():
    settings = Settings.from_env({"OPENAI_API_KEY": "sk-test", "PROCESS_TIMEOUT": "0"})
    assert settings.process_timeout is None


def test_reads_os_environ_by_default(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("REASONING_EFFORT", "high")

    settings = Settings.from_env()

    assert settings.openai_api_key == "sk-env"
    assert settings.reasoning_effort == "high"


@pytest.mark.parametrize("env", [
    {},
    {"OPENAI_API_KEY": "   "},
    {"OPENAI_API_KEY": "sk-test", "SEARCH_CONTEXT_SIZE": "huge"},
    {"OPENAI_API_KEY": "sk-test", "REASONING_EFFORT": "max"},
    {"OPENAI_API_KEY": "sk-test", "OPENAI_MAX_RETRIES": "three"},
    {"OPENAI_API_KEY": "sk-test", "PROCESS_TIMEOUT": "-1"},
])
def test_invalid_settings_raise(env):
    with pytest.raises(ConfigError):
        Settings.from_env(env)
