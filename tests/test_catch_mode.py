from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from tempo.engine.tempo import Tempo
from tempo.utils.errors import AmbiguousNumeralError, TempoError, UnrecognizedInputError

LONDON = ZoneInfo("Europe/London")
REFERENCE = datetime(2024, 5, 21, 9, 30)


def _parse(value: Any, **options: Any) -> Tempo:
    return Tempo(value, {"timezone": "Europe/London", **options}, reference=REFERENCE)


def _events(caplog: pytest.LogCaptureFixture) -> list[dict[str, Any]]:
    return [json.loads(record.message) for record in caplog.records if record.name == "tempo.parse"]


def test_unparseable_input_raises_without_catch() -> None:
    with pytest.raises(UnrecognizedInputError, match="Unrecognized date-time input") as excinfo:
        _parse("flibbertigibbet")

    assert isinstance(excinfo.value, ValueError)
    assert excinfo.value.value == "flibbertigibbet"


def test_unparseable_input_falls_back_to_now_with_catch(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="tempo.parse")

    value = _parse("flibbertigibbet", catch=True)

    assert value.to_datetime() == datetime(2024, 5, 21, 9, 30, tzinfo=LONDON)
    assert value.provenance.fallback is True
    assert value.provenance.kind == "fallback"
    assert value.provenance.error is not None
    assert value.provenance.error.startswith("UnrecognizedInputError:")

    events = _events(caplog)
    assert events[-1]["event"] == "parse_error"
    assert events[-1]["error"] == "UnrecognizedInputError"
    assert events[-1]["catch"] is True
    assert "detail" not in events[-1]


def test_every_error_kind_is_caught(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="tempo.parse")

    ambiguous = _parse(1234, catch=True)
    conflict = _parse("next xmas -1", catch=True)
    alias = _parse("someday", catch=True, event={"someday": "never"})

    assert ambiguous.provenance.error is not None
    assert ambiguous.provenance.error.startswith("AmbiguousNumeralError")
    assert conflict.provenance.error is not None
    assert conflict.provenance.error.startswith("ModifierConflictError")
    assert alias.provenance.error is not None
    assert alias.provenance.error.startswith("AliasError")
    assert [event["error"] for event in _events(caplog)] == [
        "AmbiguousNumeralError",
        "ModifierConflictError",
        "AliasError",
    ]


def test_debug_logs_error_detail_before_raising(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="tempo.parse")

    with pytest.raises(AmbiguousNumeralError):
        _parse(1234, debug=True)

    events = _events(caplog)
    assert events[-1]["event"] == "parse_error"
    assert events[-1]["catch"] is False
    assert events[-1]["detail"] == {"digits": 4}


def test_errors_are_silent_without_debug_or_catch(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="tempo.parse")

    with pytest.raises(TempoError):
        _parse("flibbertigibbet")

    assert _events(caplog) == []


def test_debug_logs_each_parse(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="tempo.parse")

    _parse("Wed 3pm", debug=True)

    events = _events(caplog)
    assert events[-1]["event"] == "parse"
    assert events[-1]["layout"] == "wkd"
    assert events[-1]["groups"]["wkd"] == "Wed"
    assert events[-1]["result"] == "2024-05-22T15:00:00+01:00"


def test_invalid_options_are_never_swallowed() -> None:
    with pytest.raises(ValueError, match="Invalid tempo options"):
        _parse("xmas", catch=True, pivot=500)
