"""Term registry: built-in and user-registered term factories."""

from __future__ import annotations

import calendar
from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType

from tempo.terms.builtin import quarter_term, season_term, timeline_term, zodiac_term
from tempo.terms.models import Term, TermRange

TermFactory = Callable[[str, int | None], Term]

_SUPPORTED_TERMS: dict[str, TermFactory] = {
    "quarter": quarter_term,
    "season": season_term,
    "zodiac": zodiac_term,
    "timeline": timeline_term,
}


def register_term(name: str, factory: TermFactory) -> None:
    """Register a term factory called with ``(sphere, fiscal)`` per configuration."""

    if not name.isidentifier():
        raise ValueError(f"Term name must be an identifier: {name}")
    _SUPPORTED_TERMS[name] = factory


def list_supported_terms() -> list[str]:
    """Return registered term names in registration order."""

    return list(_SUPPORTED_TERMS)


def build_terms(
    sphere: str,
    fiscal: int | None,
    custom: Mapping[str, Sequence[Sequence[object]]] | None = None,
) -> Mapping[str, Term]:
    """Instantiate every registered term, then the per-config custom tables."""

    terms: dict[str, Term] = {}
    for name, factory in _SUPPORTED_TERMS.items():
        term = factory(sphere, fiscal)
        if term.name != name:
            raise RuntimeError(f"Term factory '{name}' built a term named '{term.name}'")
        terms[name] = term

    for name, rows in (custom or {}).items():
        terms[name] = Term(
            name=name,
            key=name,
            description=f"Custom term {name}",
            ranges=tuple(_to_range(name, row) for row in rows),
        )

    return MappingProxyType(terms)


def _to_range(name: str, row: Sequence[object]) -> TermRange:
    if len(row) != 3:
        raise ValueError(f"Term '{name}' rows must be [label, month, day]: {list(row)}")
    label, month, day = row
    month, day = int(str(month)), int(str(day))
    if not 1 <= month <= 12:
        raise ValueError(f"Term '{name}' row '{label}' has month outside 1-12: {month}")
    # 2000 is a leap year, so Feb 29 is accepted
    if not 1 <= day <= calendar.monthrange(2000, month)[1]:
        raise ValueError(f"Term '{name}' row '{label}' has no day {day} in month {month}")
    return TermRange(str(label), month=month, day=day)
