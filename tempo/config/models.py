"""Data models for tempo options and resolved configuration."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from tempo.terms.models import Term
from tempo.tokens.registry import Snippets, Token, allocate

Sphere = Literal["north", "south"]
TimeStamp = Literal["ss", "ms", "us", "ns"]
Level = Literal["global", "local"]
Pair = tuple[str, str]


class TempoOptions(BaseModel):
    """Configuration surface accepted from defaults, stores and callers.

    Every field is optional; ``None`` means "inherit from the layer below".
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    timezone: str | None = None
    calendar: str | None = None
    locale: str | None = None
    pivot: int | None = None
    sphere: Sphere | None = None
    fiscal: int | None = None
    timestamp: TimeStamp | None = None
    mdy_locales: tuple[str, ...] | None = None
    mdy_layouts: tuple[Pair, ...] | None = None
    snippet: dict[str, str] | None = None
    layout: tuple[Pair, ...] | None = None
    event: tuple[Pair, ...] | None = None
    period: tuple[Pair, ...] | None = None
    term: dict[str, tuple[tuple[str, int, int], ...]] | None = None
    debug: bool | None = None
    catch: bool | None = None
    store: str | None = None

    @field_validator("mdy_locales", mode="before")
    @classmethod
    def _single_locale(cls, value: Any) -> Any:
        if isinstance(value, str):
            return (value,)
        return value

    @field_validator("event", "period", "layout", mode="before")
    @classmethod
    def _pairs(cls, value: Any, info: ValidationInfo) -> Any:
        """Accept a mapping, a list of pairs, or (layouts only) bare patterns."""

        if isinstance(value, Mapping):
            value = list(value.items())
        elif isinstance(value, (str, re.Pattern)):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return value

        pairs: list[Any] = []
        for item in value:
            if isinstance(item, Mapping):
                pairs.extend(item.items())
            elif isinstance(item, (str, re.Pattern)):
                if info.field_name != "layout":
                    raise ValueError(f"{info.field_name} entries must be [pattern, value] pairs")
                pairs.append((allocate().name, item))
            else:
                pairs.append(item)
        return tuple(tuple(_source(part) for part in pair) for pair in pairs)

    @field_validator("fiscal")
    @classmethod
    def _fiscal_month(cls, value: int | None) -> int | None:
        if value is not None and not 1 <= value <= 12:
            raise ValueError("fiscal must be a month number 1-12")
        return value

    @field_validator("pivot")
    @classmethod
    def _pivot_range(cls, value: int | None) -> int | None:
        if value is not None and not 0 <= value <= 99:
            raise ValueError("pivot must be between 0 and 99")
        return value


@dataclass(frozen=True)
class TempoConfig:
    """Resolved, immutable configuration for one level (global or local)."""

    level: Level
    timezone: str
    calendar: str
    locale: str
    pivot: int
    sphere: Sphere
    fiscal: int | None
    timestamp: TimeStamp
    debug: bool
    catch: bool
    store: str
    month_first: bool
    mdy_locales: tuple[str, ...]
    mdy_layouts: tuple[Pair, ...]
    layouts: tuple[Pair, ...]
    events: tuple[Pair, ...]
    periods: tuple[Pair, ...]
    custom_terms: Mapping[str, tuple[tuple[str, int, int], ...]]
    user_snippets: Mapping[str, str]
    snippets: Snippets = field(repr=False, compare=False)
    terms: Mapping[str, Term] = field(repr=False, compare=False)
    patterns: Mapping[Token, re.Pattern[str]] = field(repr=False, compare=False)
    generation: int = field(default=0, repr=False, compare=False)

    def pattern(self, name: str) -> re.Pattern[str] | None:
        for token, compiled in self.patterns.items():
            if token.name == name:
                return compiled
        return None

    def to_options(self) -> TempoOptions:
        """Return the user-facing option values of this configuration."""

        return TempoOptions(
            timezone=self.timezone,
            calendar=self.calendar,
            locale=self.locale,
            pivot=self.pivot,
            sphere=self.sphere,
            fiscal=self.fiscal,
            timestamp=self.timestamp,
            debug=self.debug,
            catch=self.catch,
            store=self.store,
        )


def _source(part: Any) -> Any:
    if isinstance(part, re.Pattern):
        return part.pattern
    return part
