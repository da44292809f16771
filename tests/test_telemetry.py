from __future__ import annotations

import json
import logging
from typing import Iterator, List

import pytest

from vimterp.runtime import telemetry
from vimterp.runtime.telemetry import JsonFormatter, TelemetryConfig


class ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def captured() -> Iterator[ListHandler]:
    # the package logger does not propagate, so caplog never sees it
    telemetry.configure(config=TelemetryConfig(level="DEBUG", console=False))
    handler = ListHandler()
    root = logging.getLogger("vimterp")
    root.addHandler(handler)
    yield handler
    root.removeHandler(handler)
    telemetry.configure(config=TelemetryConfig(console=False))


def test_get_logger_nests_names_under_package() -> None:
    assert telemetry.get_logger().name == "vimterp"
    assert telemetry.get_logger("keymaps").name == "vimterp.keymaps"
    assert telemetry.get_logger("vimterp.ex").name == "vimterp.ex"
    assert telemetry.get_logger("keymaps") is telemetry.get_logger("vimterp.keymaps")


def test_configure_rejects_conflicting_or_unknown_input() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(config=TelemetryConfig(), preset="development")
    with pytest.raises(ValueError):
        telemetry.configure(preset="verbose")


def test_configure_installs_level_and_replaces_own_handlers(
    captured: ListHandler,
) -> None:
    root = logging.getLogger("vimterp")
    assert root.level == logging.DEBUG
    assert root.propagate is False

    telemetry.configure(preset="development")
    telemetry.configure(preset="development")

    tagged = [h for h in root.handlers if getattr(h, "_vimterp_handler", False)]
    assert len(tagged) == 1
    assert captured in root.handlers


def test_production_preset_writes_to_log_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path, captured: ListHandler
) -> None:
    target = tmp_path / "engine.log"
    monkeypatch.setenv("VIMTERP_LOG_FILE", str(target))

    telemetry.configure(preset="production")
    telemetry.get_logger("test").info("hello file")

    root = logging.getLogger("vimterp")
    for handler in root.handlers:
        handler.flush()
    assert "hello file" in target.read_text(encoding="utf-8")
    assert root.level == logging.INFO


def test_record_event_carries_structured_fields(captured: ListHandler) -> None:
    telemetry.record_event("demo", level="info", data={"count": 2})

    record = captured.records[-1]
    assert record.levelno == logging.INFO
    assert record.getMessage() == "event::demo event=demo count=2"
    assert record.fields == {"event": "demo", "count": 2}


def test_record_event_respects_level(captured: ListHandler) -> None:
    telemetry.configure(config=TelemetryConfig(level="WARNING", console=False))

    telemetry.record_event("quiet", level="info")

    assert not any("quiet" in r.getMessage() for r in captured.records)
    with pytest.raises(ValueError):
        telemetry.record_event("odd", level="chatty")


def test_span_reports_end_with_metadata(captured: ListHandler) -> None:
    with telemetry.span("work", component=True, metadata={"n": 1}) as handle:
        handle.add_metadata("extra", [1, 2])

    record = captured.records[-1]
    assert record.getMessage().startswith("span::end")
    assert record.fields["span"] == "work"
    assert record.fields["component"] == "work"
    assert record.fields["n"] == "1"
    assert record.fields["extra"] == "[1, 2]"
    assert "elapsed_ms" in record.fields


def test_span_failure_is_logged_and_reraised(captured: ListHandler) -> None:
    with pytest.raises(RuntimeError):
        with telemetry.span("boom", component="tests"):
            raise RuntimeError("bad things")

    record = captured.records[-1]
    assert record.levelno == logging.ERROR
    assert record.fields["reason"] == "bad things"
    assert record.fields["component"] == "tests"


def test_span_cancel_logs_warning(captured: ListHandler) -> None:
    with telemetry.span("maybe") as handle:
        handle.cancel("user abort")

    cancel = next(r for r in captured.records if "span::cancel" in r.getMessage())
    assert cancel.levelno == logging.WARNING
    assert cancel.fields["reason"] == "user abort"


def test_json_formatter_flattens_fields() -> None:
    record = logging.LogRecord(
        "vimterp.test", logging.INFO, __file__, 1, "hello %s", ("there",), None
    )
    record.fields = {"mode": "normal", "keys": ("d", "w")}

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "hello there"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "vimterp.test"
    assert payload["mode"] == "normal"
    assert payload["keys"] == "('d', 'w')"
