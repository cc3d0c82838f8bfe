from __future__ import annotations

from typing import Iterator

import pytest
from structlog.testing import capture_logs

from vitamin.config import VitaminConfig
from vitamin.grammar import Dispatcher
from vitamin.host import TextView
from vitamin.runtime import telemetry


@pytest.fixture
def debug_logging() -> Iterator[None]:
    telemetry.configure(level="debug")
    yield
    telemetry.configure()


def test_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VITAMIN_MAX_COUNT", "50")
    monkeypatch.setenv("VITAMIN_EXIT_KEY", "ctrl+q")
    monkeypatch.setenv("VITAMIN_PROMPT", ">")

    config = VitaminConfig.from_env(register_prefix="@")

    assert config.max_count == 50
    assert config.exit_keycode == "ctrl+q"
    assert config.default_prompt == ">"
    assert config.register_prefix == "@"
    assert config.escape_keycode == "esc"


def test_config_ignores_malformed_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VITAMIN_MAX_COUNT", "lots")

    assert VitaminConfig.from_env().max_count == VitaminConfig().max_count


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        VitaminConfig(escape_keycode="esc", exit_keycode="esc")
    with pytest.raises(ValueError):
        VitaminConfig(register_prefix="''")
    with pytest.raises(ValueError):
        VitaminConfig(max_count=0)


def test_dittos_fall_back_to_the_default_motion() -> None:
    config = VitaminConfig(dittos={">": "j"})

    assert config.ditto_for(">") == "j"
    assert config.ditto_for("d") == "_"
    with pytest.raises(TypeError):
        config.dittos["d"] = "w"  # type: ignore[index]


def test_unknown_preset_is_rejected() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(preset="loud")


def test_record_event_stringifies_payload(debug_logging: None) -> None:
    with capture_logs() as logs:
        telemetry.record_event("demo", level="warning", data={"count": 3, "keys": ["a"]})

    entry = logs[-1]
    assert entry["event"] == "event::demo"
    assert entry["log_level"] == "warning"
    assert entry["count"] == "3"
    assert entry["keys"] == "['a']"


def test_span_reports_end_with_metadata(debug_logging: None) -> None:
    with capture_logs() as logs:
        with telemetry.span("work", component=True, metadata={"key": "d"}) as handle:
            handle.add_metadata("needs", "subcommand")

    entry = logs[-1]
    assert entry["event"] == "span::end"
    assert entry["component"] == "work"
    assert entry["key"] == "d"
    assert entry["needs"] == "subcommand"
    assert "duration_ms" in entry


def test_span_logs_failure_and_reraises(debug_logging: None) -> None:
    with capture_logs() as logs:
        with pytest.raises(KeyError):
            with telemetry.span("work", component="grammar"):
                raise KeyError("missing")

    entry = logs[-1]
    assert entry["event"] == "span::fail"
    assert entry["log_level"] == "error"
    assert entry["component"] == "grammar"


def test_status_without_a_sink_is_a_debug_event(debug_logging: None) -> None:
    dispatcher = Dispatcher(TextView("abc"))
    dispatcher.activate()

    with capture_logs() as logs:
        dispatcher.dispatch("l")

    statuses = [entry for entry in logs if entry["event"] == "event::status"]
    assert statuses
    assert all(entry["log_level"] == "debug" for entry in statuses)
    assert statuses[-1]["text"] == "l"
