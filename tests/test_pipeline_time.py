from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from tempo.engine.tempo import Tempo
from tempo.utils.errors import AliasError

LONDON = ZoneInfo("Europe/London")
REFERENCE = datetime(2024, 5, 21, 9, 30)


def _parse(value: Any, **options: Any) -> Tempo:
    return Tempo(value, {"timezone": "Europe/London", **options}, reference=REFERENCE)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("10:30", datetime(2024, 5, 21, 10, 30, tzinfo=LONDON)),
        ("10:30:15", datetime(2024, 5, 21, 10, 30, 15, tzinfo=LONDON)),
        ("3pm", datetime(2024, 5, 21, 15, 0, tzinfo=LONDON)),
        ("11:45 pm", datetime(2024, 5, 21, 23, 45, tzinfo=LONDON)),
        ("12pm", datetime(2024, 5, 21, 12, 0, tzinfo=LONDON)),
        ("12am", datetime(2024, 5, 21, 0, 0, tzinfo=LONDON)),
        ("13:00 am", datetime(2024, 5, 21, 1, 0, tzinfo=LONDON)),
        ("24:00", datetime(2024, 5, 22, 0, 0, tzinfo=LONDON)),
    ],
)
def test_clock_times_resolve_on_reference_date(text: str, expected: datetime) -> None:
    value = _parse(text)

    assert value.to_datetime() == expected
    assert value.provenance.layout == "tm"


def test_fractional_seconds_keep_nanoseconds() -> None:
    value = _parse("10:30:15.123456789")

    assert value.to_datetime().microsecond == 123456
    assert value.nanosecond == 789
    assert value.isoformat() == "2024-05-21T10:30:15.123456789+01:00"


def test_short_fraction_is_scaled() -> None:
    assert _parse("10:30:15.5").to_datetime().microsecond == 500000


@pytest.mark.parametrize(
    ("text", "hour", "day"),
    [
        ("morning", 8, 21),
        ("mid-morning", 10, 21),
        ("midday", 12, 21),
        ("noon", 12, 21),
        ("afternoon", 15, 21),
        ("evening", 18, 21),
        ("night", 20, 21),
        ("midnight", 0, 22),
    ],
)
def test_periods_resolve_through_the_clock_pattern(text: str, hour: int, day: int) -> None:
    value = _parse(text).to_datetime()

    assert (value.day, value.hour, value.minute) == (day, hour, 0)


def test_custom_period_is_tried_first() -> None:
    value = _parse("teatime", period=[["teatime", "4:30pm"]]).to_datetime()

    assert (value.hour, value.minute) == (16, 30)


def test_period_without_hour_raises() -> None:
    with pytest.raises(AliasError, match="yields no hour"):
        _parse("someday", period={"someday": "later"})


def test_event_with_time_suffix() -> None:
    value = _parse("xmas 10:30")

    assert value.to_datetime() == datetime(2024, 12, 25, 10, 30, tzinfo=LONDON)


def test_date_with_period_suffix() -> None:
    value = _parse("4 June 2023 afternoon")

    assert value.to_datetime() == datetime(2023, 6, 4, 15, 0, tzinfo=LONDON)


def test_utc_offset_converts_into_configured_timezone() -> None:
    value = _parse("2024-05-20T10:30:00-04:00")

    assert value.to_datetime() == datetime(2024, 5, 20, 15, 30, tzinfo=LONDON)
    assert value.to_datetime().tzinfo == LONDON


def test_compact_offset_and_zulu_are_accepted() -> None:
    assert _parse("2024-05-20 10:30+0530").to_datetime() == datetime(
        2024, 5, 20, 6, 0, tzinfo=LONDON
    )
    assert _parse("2024-01-20T10:30Z").to_datetime() == datetime(2024, 1, 20, 10, 30, tzinfo=LONDON)
