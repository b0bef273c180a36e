"""Dispatch on the kind of input handed to a Tempo."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser

from tempo.config.models import TempoConfig
from tempo.parsing.models import Provenance
from tempo.parsing.pipeline import match_layouts, resolve
from tempo.utils.errors import AmbiguousNumeralError, UnrecognizedInputError

Resolved = tuple[datetime, int, Provenance]

RECORD_FIELDS = (
    "year", "month", "day", "hour", "minute", "second", "microsecond", "nanosecond",
)

_BIGINT_RE = re.compile(r"-?[0-9]+n")
_NUMERIC_RE = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")

# integer digits -> nanoseconds per unit
_EPOCH_UNITS = ((11, 10**9), (14, 10**6), (17, 10**3))


def interpret(value: Any, config: TempoConfig, now: datetime) -> Resolved:
    """Resolve ``value`` to an aware datetime in the configured timezone.

    ``now`` is the current instant in that timezone; pattern resolution is
    anchored at its midnight.
    """

    zone = ZoneInfo(config.timezone)

    if value is None or (isinstance(value, str) and not value.strip()):
        return now, 0, Provenance(kind="now")
    if isinstance(value, bool):
        raise UnrecognizedInputError(f"Unsupported input type: {type(value).__name__}", value=value)
    if isinstance(value, str):
        return interpret_text(value, config, now)
    if isinstance(value, (int, float, Decimal)):
        return interpret_number(value, config, now)
    if isinstance(value, datetime):
        moment = value.astimezone(zone) if value.tzinfo else value.replace(tzinfo=zone)
        return moment, 0, Provenance(kind="datetime")
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=zone), 0, Provenance(kind="datetime")
    if isinstance(value, time):
        moment = datetime.combine(now.date(), value.replace(tzinfo=None), tzinfo=zone)
        return moment, 0, Provenance(kind="datetime")
    if isinstance(value, Mapping):
        return interpret_record(value, config, now)

    raise UnrecognizedInputError(f"Unsupported input type: {type(value).__name__}", value=value)


def interpret_text(text: str, config: TempoConfig, now: datetime) -> Resolved:
    text = text.strip()
    if _BIGINT_RE.fullmatch(text):
        moment, nanosecond = from_epoch_ns(int(text[:-1]), config)
        return moment, nanosecond, Provenance(kind="epoch")

    anchor = now.replace(hour=0, minute=0, second=0, microsecond=0)
    result = match_layouts(text, config)
    if result is not None:
        moment, nanosecond = resolve(result, config, anchor)
        provenance = Provenance(kind="text", layout=result.token.name, groups=dict(result.groups))
        return moment, nanosecond, provenance

    if _NUMERIC_RE.fullmatch(text):
        return interpret_number(Decimal(text), config, now, patterns=False)
    return fallback_parse(text, config, anchor)


def interpret_number(
    value: int | float | Decimal,
    config: TempoConfig,
    now: datetime,
    *,
    patterns: bool = True,
) -> Resolved:
    """Treat a number as an epoch count, the unit inferred from its digit count."""

    try:
        number = Decimal(str(value))
    except InvalidOperation as exc:
        raise UnrecognizedInputError(f"Not a finite number: {value}", value=value) from exc
    if not number.is_finite():
        raise UnrecognizedInputError(f"Not a finite number: {value}", value=value)

    whole = int(number)
    digits = len(str(abs(whole)))
    if digits <= 7:
        raise AmbiguousNumeralError(
            f"Too few digits to tell a date from an epoch count: {value}",
            value=value,
            detail={"digits": digits},
        )

    if patterns and digits == 8 and number == whole:
        anchor = now.replace(hour=0, minute=0, second=0, microsecond=0)
        result = match_layouts(str(whole), config)
        if result is not None:
            moment, nanosecond = resolve(result, config, anchor)
            provenance = Provenance(kind="text", layout=result.token.name, groups=dict(result.groups))
            return moment, nanosecond, provenance

    scale = 1
    for limit, unit in _EPOCH_UNITS:
        if digits <= limit:
            scale = unit
            break
    moment, nanosecond = from_epoch_ns(int(number * scale), config)
    return moment, nanosecond, Provenance(kind="epoch")


def from_epoch_ns(nanos: int, config: TempoConfig) -> tuple[datetime, int]:
    seconds, remainder = divmod(nanos, 10**9)
    try:
        moment = datetime.fromtimestamp(seconds, ZoneInfo(config.timezone))
    except (OverflowError, OSError, ValueError) as exc:
        raise UnrecognizedInputError(f"Epoch value out of range: {nanos}n", value=nanos) from exc
    return moment.replace(microsecond=remainder // 1_000), remainder % 1_000


def interpret_record(record: Mapping[str, Any], config: TempoConfig, now: datetime) -> Resolved:
    """Merge a partial record of date-time fields onto now (or ``record['value']``)."""

    unknown = set(record) - set(RECORD_FIELDS) - {"timezone", "value"}
    if unknown:
        raise UnrecognizedInputError(
            f"Unsupported record fields: {', '.join(sorted(unknown))}",
            value=dict(record),
        )

    zone = ZoneInfo(config.timezone)
    moment, nanosecond = now, 0
    if record.get("value") is not None:
        moment, nanosecond, _ = interpret(record["value"], config, now)

    if record.get("timezone"):
        try:
            moment = moment.astimezone(ZoneInfo(str(record["timezone"])))
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise UnrecognizedInputError(
                f"Unknown record timezone: {record['timezone']}", value=dict(record)
            ) from exc

    fields = {name: int(record[name]) for name in RECORD_FIELDS[:-1] if record.get(name) is not None}
    if record.get("nanosecond") is not None:
        nanosecond = int(record["nanosecond"])
        if not 0 <= nanosecond <= 999:
            raise UnrecognizedInputError(f"nanosecond must be 0-999: {nanosecond}", value=nanosecond)
    try:
        moment = moment.replace(**fields)
    except ValueError as exc:
        raise UnrecognizedInputError(f"Invalid record: {exc}", value=dict(record)) from exc

    return moment.astimezone(zone), nanosecond, Provenance(kind="record")


def fallback_parse(text: str, config: TempoConfig, anchor: datetime) -> Resolved:
    """Hand text no layout matched to dateutil's generic parser."""

    zone = ZoneInfo(config.timezone)
    try:
        parsed = date_parser.parse(
            text,
            dayfirst=not config.month_first,
            default=anchor.replace(tzinfo=None),
        )
    except (ValueError, OverflowError) as exc:
        raise UnrecognizedInputError(
            f"Unrecognized date-time input: {text}",
            value=text,
            detail={"fallback": str(exc)},
        ) from exc

    moment = parsed.astimezone(zone) if parsed.tzinfo else parsed.replace(tzinfo=zone)
    return moment, 0, Provenance(kind="text", layout="dateutil")
