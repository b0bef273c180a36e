from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from tempo.engine.tempo import Tempo
from tempo.utils.errors import AmbiguousNumeralError, UnrecognizedInputError

UTC = ZoneInfo("UTC")
LONDON = ZoneInfo("Europe/London")
REFERENCE = datetime(2024, 5, 21, 9, 30)


def _parse(value: Any, **options: Any) -> Tempo:
    return Tempo(value, {"timezone": "Europe/London", **options}, reference=REFERENCE)


def _utc(value: Any, **options: Any) -> Tempo:
    return Tempo(value, {"timezone": "UTC", **options}, reference=REFERENCE)


@pytest.mark.parametrize("value", [None, "", "   "])
def test_absent_input_is_now(value: Any) -> None:
    result = _parse(value)

    assert result.to_datetime() == datetime(2024, 5, 21, 9, 30, tzinfo=LONDON)
    assert result.provenance.kind == "now"
    assert result.provenance.fallback is False


@pytest.mark.parametrize(
    ("value", "microsecond", "nanosecond"),
    [
        (1_700_000_000, 0, 0),
        (1_700_000_000_123, 123000, 0),
        (1_700_000_000_123_456, 123456, 0),
        (1_700_000_000_123_456_789, 123456, 789),
        ("1700000000123456789n", 123456, 789),
        (1_700_000_000.5, 500000, 0),
        (Decimal("1700000000.25"), 250000, 0),
        ("1700000000", 0, 0),
    ],
)
def test_epoch_unit_follows_digit_count(value: Any, microsecond: int, nanosecond: int) -> None:
    result = _utc(value)

    assert result.to_datetime().replace(microsecond=0) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
    assert result.to_datetime().microsecond == microsecond
    assert result.nanosecond == nanosecond
    assert result.provenance.kind == "epoch"


def test_epoch_ns_and_timestamp_precision() -> None:
    value = _utc(1_700_000_000_123_456_789)

    assert value.epoch_ns == 1_700_000_000_123_456_789
    assert value.ts == 1_700_000_000_123
    assert _utc(1_700_000_000, timestamp="ss").ts == 1_700_000_000
    assert _utc(1_700_000_000, timestamp="ns").ts == 1_700_000_000 * 10**9


def test_eight_digit_number_is_tried_as_a_date_first() -> None:
    value = _parse(20230604)

    assert value.to_datetime() == datetime(2023, 6, 4, tzinfo=LONDON)
    assert value.provenance.layout == "ymd"


def test_eight_digit_number_that_is_no_date_is_epoch_seconds() -> None:
    value = _utc(99999999)

    assert value.provenance.kind == "epoch"
    assert value.to_datetime() == datetime(1973, 3, 3, 9, 46, 39, tzinfo=UTC)


@pytest.mark.parametrize("value", [0, 1234567, -1234567, 12.5])
def test_short_numbers_are_ambiguous(value: Any) -> None:
    with pytest.raises(AmbiguousNumeralError, match="Too few digits"):
        _parse(value)


def test_negative_epoch_is_before_1970() -> None:
    assert _utc(-1_000_000_000).to_datetime() == datetime(1938, 4, 24, 22, 13, 20, tzinfo=UTC)


def test_booleans_are_not_numbers() -> None:
    with pytest.raises(UnrecognizedInputError, match="Unsupported input type: bool"):
        _parse(True)


def test_unsupported_type_raises() -> None:
    with pytest.raises(UnrecognizedInputError, match="Unsupported input type: list"):
        _parse([2024, 5, 21])


def test_aware_datetime_is_converted() -> None:
    value = _parse(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))

    assert value.to_datetime() == datetime(2024, 1, 1, 12, 0, tzinfo=LONDON)
    assert value.to_datetime().tzinfo == LONDON


def test_naive_datetime_is_localized() -> None:
    value = _parse(datetime(2024, 7, 1, 12, 0))

    assert value.isoformat() == "2024-07-01T12:00:00+01:00"


def test_date_and_time_inputs() -> None:
    assert _parse(date(2024, 7, 1)).isoformat() == "2024-07-01T00:00:00+01:00"
    assert _parse(time(18, 45)).isoformat() == "2024-05-21T18:45:00+01:00"


def test_record_merges_onto_now() -> None:
    value = _parse({"year": 2020, "month": 2, "day": 29})

    assert value.to_datetime() == datetime(2020, 2, 29, 9, 30, tzinfo=LONDON)
    assert value.provenance.kind == "record"


def test_record_with_base_value_and_timezone() -> None:
    assert _parse({"value": "xmas", "hour": 18}).to_datetime() == datetime(
        2024, 12, 25, 18, 0, tzinfo=LONDON
    )
    tokyo = _parse({"value": "xmas", "hour": 18, "timezone": "Asia/Tokyo"})
    assert tokyo.to_datetime() == datetime(2024, 12, 25, 18, 0, tzinfo=ZoneInfo("Asia/Tokyo"))


def test_record_with_unknown_field_raises() -> None:
    with pytest.raises(UnrecognizedInputError, match="Unsupported record fields: weekday"):
        _parse({"weekday": 3})


def test_record_with_invalid_field_raises() -> None:
    with pytest.raises(UnrecognizedInputError, match="Invalid record"):
        _parse({"month": 13})


def test_record_with_unknown_timezone_raises() -> None:
    with pytest.raises(UnrecognizedInputError, match="Unknown record timezone"):
        _parse({"hour": 8, "timezone": "Mars/Olympus"})


def test_clone_keeps_the_instant() -> None:
    source = _parse("2024-05-20T10:30:00.123456789Z")
    clone = Tempo(source)
    tokyo = Tempo(source, {"timezone": "Asia/Tokyo"})

    assert clone == source
    assert clone.nanosecond == 789
    assert clone.provenance.kind == "clone"
    assert tokyo == source
    assert tokyo.to_datetime().tzinfo == ZoneInfo("Asia/Tokyo")


def test_record_can_carry_another_tempo() -> None:
    source = _parse("2024-05-20T10:30:00.123456789Z")

    value = _parse({"value": source, "hour": 8})

    assert value.to_datetime().hour == 8
    assert value.nanosecond == 789


def test_unmatched_text_falls_back_to_generic_parser() -> None:
    value = _parse("June 4th, 2023")

    assert value.to_datetime() == datetime(2023, 6, 4, tzinfo=LONDON)
    assert value.provenance.layout == "dateutil"


def test_values_are_immutable() -> None:
    value = _parse("xmas")

    with pytest.raises(AttributeError, match="immutable"):
        value._moment = datetime(2000, 1, 1)  # type: ignore[misc]


def test_ordering_and_compare() -> None:
    earlier = _parse("xmas eve")
    later = _parse("xmas")

    assert earlier < later
    assert later >= earlier
    assert Tempo.compare(earlier, later) == -1
    assert Tempo.compare(later, earlier) == 1
    assert Tempo.compare(later, _parse("25 Dec")) == 0
    assert len({later, _parse("25 Dec")}) == 1


def test_invalid_options_raise_before_parsing() -> None:
    with pytest.raises(ValueError, match="Invalid tempo options"):
        _parse("xmas", pivot=500)
    with pytest.raises(ValueError, match="Invalid tempo options"):
        Tempo("xmas", colour="red")


def test_keyword_overrides_apply_after_options() -> None:
    value = Tempo("04/06/2023", {"locale": "en-GB", "timezone": "UTC"}, locale="en-US", reference=REFERENCE)

    assert value.config.locale == "en-US"
    assert value.to_datetime().month == 4
    assert value.options().locale == "en-US"
