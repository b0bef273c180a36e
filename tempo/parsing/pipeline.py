"""Layout matching and step-wise resolution of a match into one instant.

Layouts are tried in configured order; the first match wins. Its groups
then pass through cleanup, event and period expansion, month-name
normalization, weekday or term resolution, date resolution, time
resolution and finally assembly in the configured timezone.
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo

from tempo.config.models import Pair, TempoConfig
from tempo.layouts.composer import compile_layout
from tempo.parsing.modifier import adjust
from tempo.parsing.models import MatchResult
from tempo.tokens.snippets import TIME_GROUPS
from tempo.utils.errors import AliasError, ModifierConflictError, UnrecognizedInputError

MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")
WEEKDAYS = ("mo", "tu", "we", "th", "fr", "sa", "su")

EVENT_DAY_FIRST = "{dd}{sep}?{mm}(?:{sep}?{yy})?"
EVENT_MONTH_FIRST = "{mm}{sep}?{dd}(?:{sep}?{yy})?"
PERIOD_TIME = "{hh}{mi}?{ss}?{ff}?{mer}?"

_MODIFIER_GROUPS = ("mod", "ofs", "afx")
_RELATIVE_GROUPS = frozenset({"wkd", "mod", "cnt", "ofs", "afx"})
_ALIAS_RE = re.compile(r"(evt|per)([0-9]+)")
_OFFSET_RE = re.compile(r"([+\-])([0-9]{2}):?([0-9]{2})")


def match_layouts(text: str, config: TempoConfig) -> MatchResult | None:
    """Return the first layout match for ``text``, with empty groups dropped."""

    for token, pattern in config.patterns.items():
        found = pattern.match(text)
        if found is not None:
            return MatchResult(token=token, groups=cleanup(found.groupdict()))
    return None


def cleanup(groups: dict[str, str | None]) -> dict[str, str]:
    cleaned: dict[str, str] = {}
    for name, value in groups.items():
        if value is None:
            continue
        value = value.strip()
        if value:
            cleaned[name] = value
    return cleaned


def resolve(result: MatchResult, config: TempoConfig, anchor: datetime) -> tuple[datetime, int]:
    """Resolve a match against ``anchor`` (midnight of the reference date).

    Returns the aware datetime in the configured timezone and the
    sub-microsecond nanoseconds.
    """

    resolve_modifier(result)
    resolve_event(result, config)
    resolve_period(result, config)
    normalize_month(result)
    if not resolve_weekday(result, anchor) and not resolve_term(result, config, anchor):
        resolve_date(result, config, anchor)
    resolve_time(result)
    return assemble(result, config)


def resolve_modifier(result: MatchResult) -> None:
    """Fold ``mod``/``ofs``/``afx`` into one modifier and count."""

    groups = result.groups
    supplied = [name for name in _MODIFIER_GROUPS if name in groups]
    if len(supplied) > 1:
        raise ModifierConflictError(
            "A modifier and a relative suffix cannot both be supplied: "
            + ", ".join(groups[name] for name in supplied),
            value=" ".join(groups[name] for name in supplied),
            detail={"layout": result.token.name, "groups": dict(groups)},
        )

    if "cnt" in groups:
        result.count = int(groups["cnt"])
    if "ofs" in groups:
        offset = groups["ofs"]
        result.modifier = offset[0]
        result.count = int(offset[1:])
    elif "afx" in groups:
        result.modifier = groups["afx"].lower()
    elif "mod" in groups:
        result.modifier = groups["mod"].lower()


def resolve_event(result: MatchResult, config: TempoConfig) -> None:
    name, index = _alias_slot(result.groups, "evt")
    if name is None:
        return
    del result.groups[name]
    _, canonical = _definition(config.events, index, "Event", name)

    templates = (EVENT_MONTH_FIRST, EVENT_DAY_FIRST)
    if not config.month_first:
        templates = templates[::-1]
    for template in templates:
        found = compile_layout(template, config.snippets).match(canonical.strip())
        if found is not None:
            result.groups.update(cleanup(found.groupdict()))
            return
    raise AliasError(
        f"Event definition is not a date: {canonical}",
        value=canonical,
        detail={"slot": name},
    )


def resolve_period(result: MatchResult, config: TempoConfig) -> None:
    name, index = _alias_slot(result.groups, "per")
    if name is None:
        return
    del result.groups[name]
    _, canonical = _definition(config.periods, index, "Period", name)

    found = compile_layout(PERIOD_TIME, config.snippets).match(canonical.strip())
    groups = cleanup(found.groupdict()) if found is not None else {}
    if "hh" not in groups:
        raise AliasError(
            f"Period definition yields no hour: {canonical}",
            value=canonical,
            detail={"slot": name},
        )
    result.groups.update(groups)


def normalize_month(result: MatchResult) -> None:
    month = result.groups.get("mm")
    if month is not None and not month.isdigit():
        result.groups["mm"] = f"{MONTHS.index(month[:3].lower()) + 1:02d}"


def resolve_weekday(result: MatchResult, anchor: datetime) -> bool:
    """Move to the requested weekday; only when nothing but a time accompanies it."""

    groups = result.groups
    if "wkd" not in groups:
        return False
    if set(groups) - _RELATIVE_GROUPS - TIME_GROUPS:
        return False

    target = WEEKDAYS.index(groups["wkd"][:2].lower()) + 1
    current = anchor.isoweekday()
    days = target - current + adjust(result.modifier, result.count, target, current) * 7
    moved = anchor + timedelta(days=days)
    result.year, result.month, result.day = moved.year, moved.month, moved.day
    result.modifier = None
    return True


def resolve_term(result: MatchResult, config: TempoConfig, anchor: datetime) -> bool:
    label = result.groups.get("term")
    if label is None:
        return False

    for term in config.terms.values():
        if not term.parseable:
            continue
        if label.casefold() in (item.casefold() for item in term.labels):
            start = term.resolve(label, anchor, result.modifier, result.count)
            result.year, result.month, result.day = start.year, start.month, start.day
            result.modifier = None
            return True
    raise AliasError(f"Unknown term label: {label}", value=label)


def resolve_date(result: MatchResult, config: TempoConfig, anchor: datetime) -> None:
    groups = result.groups
    year = expand_year(groups["yy"], anchor.year, config.pivot) if "yy" in groups else anchor.year
    month = int(groups["mm"]) if "mm" in groups else anchor.month
    day = int(groups["dd"]) if "dd" in groups else anchor.day

    if result.modifier is not None:
        year += adjust(result.modifier, result.count, (month, day), (anchor.month, anchor.day))
        result.modifier = None

    if not 1 <= year <= 9999:
        raise UnrecognizedInputError(f"Year out of range: {year}", value=year)
    result.year, result.month = year, month
    result.day = min(day, calendar.monthrange(year, month)[1])


def expand_year(text: str, reference_year: int, offset: int) -> int:
    """Expand a two-digit year around the pivot derived from ``offset``.

    ``century = reference_year // 100`` and
    ``pivot = (reference_year - offset) % 100``; a value at or above the
    pivot lands in ``century``, anything below in the century before.
    """

    if len(text) != 2:
        return int(text)
    value = int(text)
    century = reference_year // 100
    pivot = (reference_year - offset) % 100
    return (century if value >= pivot else century - 1) * 100 + value


def resolve_time(result: MatchResult) -> None:
    groups = result.groups
    hour = int(groups.get("hh", 0))
    result.minute = int(groups.get("mi", 0))
    result.second = int(groups.get("ss", 0))

    if "ff" in groups:
        nanos = int(groups["ff"].ljust(9, "0"))
        result.millisecond = nanos // 1_000_000
        result.microsecond = nanos // 1_000 % 1_000
        result.nanosecond = nanos % 1_000

    meridiem = groups.get("mer", "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour >= 12:
        hour -= 12
    result.hour = hour


def assemble(result: MatchResult, config: TempoConfig) -> tuple[datetime, int]:
    zone = ZoneInfo(config.timezone)
    offset = result.groups.get("tzd")
    tzinfo = parse_offset(offset) if offset else zone

    rollover = result.hour == 24
    try:
        moment = datetime(
            result.year or 1,
            result.month or 1,
            result.day or 1,
            0 if rollover else result.hour,
            result.minute,
            result.second,
            result.millisecond * 1_000 + result.microsecond,
            tzinfo=tzinfo,
        )
        if rollover:
            moment += timedelta(days=1)
    except (ValueError, OverflowError) as exc:
        raise UnrecognizedInputError(
            f"Resolved components do not form a date: {exc}",
            detail={"layout": result.token.name, "groups": dict(result.groups)},
        ) from exc

    if offset:
        moment = moment.astimezone(zone)
    return moment, result.nanosecond


def parse_offset(text: str) -> dt_timezone:
    if text.upper() == "Z":
        return dt_timezone.utc
    found = _OFFSET_RE.fullmatch(text)
    if found is None:
        raise UnrecognizedInputError(f"Invalid UTC offset: {text}", value=text)
    sign, hours, minutes = found.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return dt_timezone(-delta if sign == "-" else delta)


def _alias_slot(groups: dict[str, str], prefix: str) -> tuple[str | None, int]:
    for name in groups:
        found = _ALIAS_RE.fullmatch(name)
        if found is not None and found.group(1) == prefix:
            return name, int(found.group(2))
    return None, -1


def _definition(table: tuple[Pair, ...], index: int, kind: str, slot: str) -> Pair:
    if index >= len(table):
        raise AliasError(f"{kind} '{slot}' has no registered definition", value=slot)
    pattern, canonical = table[index]
    if not canonical or not str(canonical).strip():
        raise AliasError(f"{kind} '{pattern}' has an empty definition", value=pattern)
    return pattern, str(canonical)
