import sys

import pytest

from toolfold import FoldPosition, ToolFoldConfigurationError, ToolFoldSettings


def test_defaults_without_environment():
    settings = ToolFoldSettings.from_env({})
    config = settings.to_fold_config()

    assert settings.save_tool_calls is True
    assert settings.log_level == "INFO"
    assert config.position == FoldPosition.PREPEND
    assert config.joiner == "\n\n"
    assert config.max_observation_length == 4000


def test_environment_overrides():
    settings = ToolFoldSettings.from_env({
        "TOOLFOLD_POSITION": "append",
        "TOOLFOLD_JOINER": "\\n---\\n",
        "TOOLFOLD_MAX_OBSERVATION_LENGTH": "250",
        "TOOLFOLD_INCLUDE_TOOLS": "web_search, calculator,",
        "TOOLFOLD_EXCLUDE_TOOLS": "calculator",
        "TOOLFOLD_SAVE_TOOL_CALLS": "false",
        "TOOLFOLD_LOG_FORMAT": "console",
        "UNRELATED": "ignored",
    })
    config = settings.to_fold_config()

    assert settings.save_tool_calls is False
    assert settings.log_format == "console"
    assert config.position == FoldPosition.APPEND
    assert config.joiner == "\n---\n"
    assert config.max_observation_length == 250
    assert config.include_tools == frozenset({"web_search", "calculator"})
    assert config.exclude_tools == frozenset({"calculator"})


@pytest.mark.parametrize(
    "environ",
    [
        {"TOOLFOLD_POSITION": "middle"},
        {"TOOLFOLD_MAX_OBSERVATION_LENGTH": "0"},
        {"TOOLFOLD_MAX_OBSERVATION_LENGTH": "lots"},
    ],
)
def test_invalid_environment_is_rejected(environ):
    with pytest.raises(ToolFoldConfigurationError):
        ToolFoldSettings.from_env(environ)


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("TOOLFOLD_POSITION", "replace")
    assert ToolFoldSettings.from_env().position == FoldPosition.REPLACE


def test_resolve_memory_applies_configured_fold(memory, web_search_step):
    settings = ToolFoldSettings.from_env({"TOOLFOLD_POSITION": "append", "TOOLFOLD_JOINER": " | "})
    resolved = settings.resolve_memory(memory)
    resolved.save_context({}, {"output": "Done.", "intermediate_steps": [web_search_step]})

    assert memory.last_output == 'Done. | tool call: web_search({"query":"n8n"}) => {"results":"10 hits"}'


def test_resolve_memory_respects_switch(memory):
    settings = ToolFoldSettings.from_env({"TOOLFOLD_SAVE_TOOL_CALLS": "0"})
    assert settings.resolve_memory(memory) is memory


def test_configure_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(
        "toolfold.config.settings.setup_logging",
        lambda **kwargs: calls.append(kwargs)
    )
    ToolFoldSettings.from_env({
        "TOOLFOLD_LOG_LEVEL": "DEBUG",
        "TOOLFOLD_LOG_FORMAT": "console",
        "TOOLFOLD_LOG_STREAM": "stderr",
    }).configure_logging()

    assert calls == [{"log_level": "DEBUG", "log_format": "console", "service_name": "toolfold", "stream": sys.stderr}]


def test_unknown_log_stream_is_rejected():
    with pytest.raises(ToolFoldConfigurationError, match="log_stream"):
        ToolFoldSettings.from_env({"TOOLFOLD_LOG_STREAM": "syslog"})


@pytest.mark.parametrize("raw", ["", "   ", " , ,"])
def test_empty_tool_lists_mean_not_set(memory, web_search_step, raw):
    settings = ToolFoldSettings.from_env({"TOOLFOLD_INCLUDE_TOOLS": raw, "TOOLFOLD_EXCLUDE_TOOLS": raw})

    assert settings.include_tools is None
    assert settings.exclude_tools is None

    settings.resolve_memory(memory).save_context({}, {"output": "Done.", "intermediate_steps": [web_search_step]})
    assert memory.last_output == 'tool call: web_search({"query":"n8n"}) => {"results":"10 hits"}\n\nDone.'
