"""Relative-modifier algebra shared by weekday, date and term resolution."""

from __future__ import annotations

from typing import Any, Literal

Modifier = Literal[
    "=", "this", "+", "next", "-", "prev", "last",
    "<", "<=", "-=", ">", ">=", "+=", "ago", "hence",
]

MODIFIERS: frozenset[str] = frozenset(
    {"=", "this", "+", "next", "-", "prev", "last", "<", "<=", "-=", ">", ">=", "+=", "ago", "hence"}
)


def adjust(modifier: str | None, count: int, target: Any, reference: Any) -> int:
    """Return the number of periods to shift for ``modifier``.

    ``target`` and ``reference`` are comparable ordinals (weekday number,
    ``(month, day)`` tuple, term start) of the requested value and of the
    reference date.

    | modifier            | shift                               |
    | :------------------ | :---------------------------------- |
    | None, ``=``, this   | 0                                   |
    | ``+``, next         | +count                              |
    | ``-``, prev, last   | -count                              |
    | ``<``, ago          | -count if reference <= target       |
    | ``<=``, ``-=``      | -count if reference < target        |
    | ``>``, hence        | +count if reference >= target       |
    | ``>=``, ``+=``      | +count if reference > target        |
    """

    count = abs(count)
    mod = modifier.lower() if modifier else None

    if mod in (None, "=", "this"):
        return 0
    if mod in ("+", "next"):
        return count
    if mod in ("-", "prev", "last"):
        return -count
    if mod in ("<", "ago"):
        return -count if reference <= target else 0
    if mod in ("<=", "-="):
        return -count if reference < target else 0
    if mod in (">", "hence"):
        return count if reference >= target else 0
    if mod in (">=", "+="):
        return count if reference > target else 0
    raise ValueError(f"Unsupported modifier: {modifier}")
