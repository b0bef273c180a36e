"""Records produced while interpreting an input."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal

from tempo.tokens.registry import Token

InputKind = Literal["now", "text", "epoch", "datetime", "clone", "record", "fallback"]


@dataclass
class MatchResult:
    """A layout match whose groups are resolved step by step into components."""

    token: Token
    groups: dict[str, str]
    year: int | None = None
    month: int | None = None
    day: int | None = None
    hour: int = 0
    minute: int = 0
    second: int = 0
    millisecond: int = 0
    microsecond: int = 0
    nanosecond: int = 0
    modifier: str | None = None
    count: int = 1


@dataclass(frozen=True)
class Provenance:
    """How a value was obtained; ``fallback`` marks a guess rather than a parse."""

    kind: InputKind
    layout: str | None = None
    groups: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    fallback: bool = False
    error: str | None = None
