"""Configuration cascade: merge option layers and derive computed facts.

Layers merge left to right. Scalars overwrite; event, period and layout
tables are extended with the newer entries first; snippet and term tables
merge key-wise. Hemisphere, month-first preference, term ranges and the
compiled layout patterns are derived after the merge.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone as dt_timezone
from types import MappingProxyType
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from babel import Locale, UnknownLocaleError
from babel.core import get_global
from pydantic import ValidationError

from tempo.config.loader import load_defaults
from tempo.config.models import Level, Pair, Sphere, TempoConfig, TempoOptions
from tempo.layouts.composer import compile_layout
from tempo.terms.models import Term
from tempo.terms.registry import build_terms
from tempo.tokens.registry import Snippets, Token, generation, resolve
from tempo.utils.reporting import config_logger, log_event

SUPPORTED_CALENDARS = frozenset({"iso8601", "gregory"})

DAY_FIRST_DATE = "{dd}{sep}?{mm}(?:{sep}?{yy})?|{mod}?{evt}{ofs}?{afx}?"
MONTH_FIRST_DATE = "{mm}{sep}?{dd}(?:{sep}?{yy})?|{mod}?{evt}{ofs}?{afx}?"
CLOCK_TIME = "{hh}{mi}?{ss}?{ff}?{mer}?|{per}"

OptionsLike = TempoOptions | Mapping[str, Any]


def coerce_options(options: OptionsLike | None) -> TempoOptions:
    """Validate a caller-supplied options mapping."""

    if options is None:
        return TempoOptions()
    if isinstance(options, TempoOptions):
        return options
    try:
        return TempoOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise ValueError(f"Invalid tempo options: {exc}") from exc


def build(base: TempoConfig | None, *layers: OptionsLike | None) -> TempoConfig:
    """Return a new configuration from ``base`` overlaid with ``layers``.

    With no ``base`` the library defaults form the bottom layer and the
    result is a global configuration; otherwise the result is a private
    local overlay of ``base``. ``base`` itself is never modified.
    """

    level: Level = "global" if base is None else "local"
    current = generation()
    options = [coerce_options(layer) for layer in layers]
    if base is None:
        options.insert(0, load_defaults())
        state: dict[str, Any] = {}
    else:
        state = _state_from(base)

    for layer in options:
        _merge(state, layer)

    month_first = is_month_first(state["locale"], state["timezone"], state["mdy_locales"])
    layouts = swap_layouts(state["layouts"], state["mdy_layouts"], month_first)
    terms = build_terms(state["sphere"], state["fiscal"], state["custom_terms"])

    if base is not None and base.generation == current and _pattern_inputs(base) == (
        layouts, state["events"], state["periods"], state["user_snippets"], month_first,
        _term_labels(terms),
    ):
        snippets = base.snippets
        patterns = base.patterns
        recompiled = False
    else:
        snippets = bind_snippets(
            state["user_snippets"], state["events"], state["periods"], terms, month_first
        )
        patterns = compile_patterns(layouts, snippets)
        recompiled = True

    config = TempoConfig(
        level=level,
        timezone=state["timezone"],
        calendar=state["calendar"],
        locale=state["locale"],
        pivot=state["pivot"],
        sphere=state["sphere"],
        fiscal=state["fiscal"],
        timestamp=state["timestamp"],
        debug=state["debug"],
        catch=state["catch"],
        store=state["store"],
        month_first=month_first,
        mdy_locales=state["mdy_locales"],
        mdy_layouts=state["mdy_layouts"],
        layouts=layouts,
        events=state["events"],
        periods=state["periods"],
        custom_terms=MappingProxyType(dict(state["custom_terms"])),
        user_snippets=MappingProxyType(dict(state["user_snippets"])),
        snippets=snippets,
        terms=terms,
        patterns=patterns,
        generation=current,
    )

    if config.debug:
        log_event(
            config_logger,
            logging.INFO,
            "config_built",
            level=level,
            timezone=config.timezone,
            locale=config.locale,
            sphere=config.sphere,
            month_first=month_first,
            layouts=[name for name, _ in layouts],
            recompiled=recompiled,
        )
    return config


def refresh(config: TempoConfig) -> TempoConfig:
    """Recompile the patterns of ``config`` if global snippets changed since it was built."""

    current = generation()
    if config.generation == current:
        return config
    snippets = bind_snippets(
        config.user_snippets, config.events, config.periods, config.terms, config.month_first
    )
    patterns = compile_patterns(config.layouts, snippets)
    return dataclasses.replace(config, snippets=snippets, patterns=patterns, generation=current)


def canonical_locale(value: str) -> str:
    """Return the BCP 47 style id (``en-US``) for a locale id."""

    raw = value.split(".")[0].split("@")[0]
    try:
        parsed = Locale.parse(raw, sep="-" if "-" in raw else "_")
    except (UnknownLocaleError, ValueError, TypeError) as exc:
        raise ValueError(f"Unknown locale: {value}") from exc
    return str(parsed).replace("_", "-")


def validate_timezone(value: str) -> ZoneInfo:
    try:
        return ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {value}") from exc


def derive_sphere(timezone: str, year: int | None = None) -> Sphere | None:
    """Hemisphere from the sign of the January minus June UTC offsets.

    Zones without daylight saving have no opinion and return ``None``.
    """

    zone = validate_timezone(timezone)
    year = year or datetime.now(dt_timezone.utc).year
    january = datetime(year, 1, 1, tzinfo=zone).utcoffset()
    june = datetime(year, 6, 1, tzinfo=zone).utcoffset()
    if january is None or june is None or january == june:
        return None
    return "north" if january < june else "south"


def is_month_first(locale: str, timezone: str, mdy_locales: Iterable[str]) -> bool:
    """True if the locale, or the territory of the timezone, writes month before day."""

    canonical = {canonical_locale(item) for item in mdy_locales}
    if locale in canonical:
        return True

    territory = get_global("zone_territories").get(timezone)
    if territory is None:
        return False
    return any(Locale.parse(item, sep="-").territory == territory for item in canonical)


def swap_layouts(
    layouts: tuple[Pair, ...], pairs: Iterable[Pair], month_first: bool
) -> tuple[Pair, ...]:
    """Exchange the positions of each (day-first, month-first) layout pair."""

    if not month_first:
        return layouts
    ordered = list(layouts)
    names = [name for name, _ in ordered]
    for first, second in pairs:
        if first in names and second in names:
            i, j = names.index(first), names.index(second)
            ordered[i], ordered[j] = ordered[j], ordered[i]
            names[i], names[j] = names[j], names[i]
    return tuple(ordered)


def bind_snippets(
    user_snippets: Mapping[str, str],
    events: tuple[Pair, ...],
    periods: tuple[Pair, ...],
    terms: Mapping[str, Term],
    month_first: bool,
) -> Snippets:
    """Private snippet scope with the user bindings and computed fragments."""

    snippets = Snippets()
    for name, fragment in user_snippets.items():
        snippets.register(name, fragment)

    snippets.register("dt", MONTH_FIRST_DATE if month_first else DAY_FIRST_DATE)
    snippets.register("tm", CLOCK_TIME)
    if events:
        snippets.register("evt", _alias_fragment("evt", events))
    if periods:
        snippets.register("per", _alias_fragment("per", periods))

    labels = _term_labels(terms)
    if labels:
        choices = "|".join(re.escape(label) for label in sorted(labels, key=len, reverse=True))
        snippets.register("term", f"(?P<term>{choices})")
    return snippets


def compile_patterns(layouts: tuple[Pair, ...], snippets: Snippets) -> Mapping[Token, re.Pattern[str]]:
    patterns: dict[Token, re.Pattern[str]] = {}
    for name, template in layouts:
        patterns[resolve(name)] = compile_layout(template, snippets)
    return MappingProxyType(patterns)


def _alias_fragment(prefix: str, table: tuple[Pair, ...]) -> str:
    return "|".join(f"(?P<{prefix}{index}>{pattern})" for index, (pattern, _) in enumerate(table))


def _term_labels(terms: Mapping[str, Term]) -> tuple[str, ...]:
    labels: list[str] = []
    for term in terms.values():
        if term.parseable:
            labels.extend(label for label in term.labels if label not in labels)
    return tuple(labels)


def _pattern_inputs(config: TempoConfig) -> tuple[Any, ...]:
    return (
        config.layouts,
        config.events,
        config.periods,
        dict(config.user_snippets),
        config.month_first,
        _term_labels(config.terms),
    )


def _state_from(config: TempoConfig) -> dict[str, Any]:
    # layouts are kept in their unswapped order so a later swap starts clean
    layouts = swap_layouts(config.layouts, config.mdy_layouts, config.month_first)
    return {
        "timezone": config.timezone,
        "calendar": config.calendar,
        "locale": config.locale,
        "pivot": config.pivot,
        "sphere": config.sphere,
        "fiscal": config.fiscal,
        "timestamp": config.timestamp,
        "debug": config.debug,
        "catch": config.catch,
        "store": config.store,
        "mdy_locales": config.mdy_locales,
        "mdy_layouts": config.mdy_layouts,
        "layouts": layouts,
        "events": config.events,
        "periods": config.periods,
        "custom_terms": dict(config.custom_terms),
        "user_snippets": dict(config.user_snippets),
    }


def _merge(state: dict[str, Any], layer: TempoOptions) -> None:
    for name in ("pivot", "fiscal", "timestamp", "debug", "catch", "store", "sphere"):
        value = getattr(layer, name)
        if value is not None:
            state[name] = value

    if layer.calendar is not None:
        calendar = layer.calendar.lower()
        if calendar not in SUPPORTED_CALENDARS:
            raise ValueError(f"Unsupported calendar: {layer.calendar}")
        state["calendar"] = calendar

    if layer.locale is not None:
        state["locale"] = canonical_locale(layer.locale)

    if layer.timezone is not None:
        validate_timezone(layer.timezone)
        state["timezone"] = layer.timezone
        if layer.sphere is None:
            state["sphere"] = derive_sphere(layer.timezone) or state.get("sphere") or "north"

    if layer.mdy_locales is not None:
        state["mdy_locales"] = tuple(canonical_locale(item) for item in layer.mdy_locales)
    if layer.mdy_layouts is not None:
        state["mdy_layouts"] = layer.mdy_layouts

    state.setdefault("mdy_locales", ())
    state.setdefault("mdy_layouts", ())
    state.setdefault("fiscal", None)

    state["events"] = (layer.event or ()) + state.get("events", ())
    state["periods"] = (layer.period or ()) + state.get("periods", ())

    added = layer.layout or ()
    replaced = {name for name, _ in added}
    kept = tuple(pair for pair in state.get("layouts", ()) if pair[0] not in replaced)
    state["layouts"] = added + kept

    state["user_snippets"] = {**state.get("user_snippets", {}), **(layer.snippet or {})}
    state["custom_terms"] = {**state.get("custom_terms", {}), **(layer.term or {})}
