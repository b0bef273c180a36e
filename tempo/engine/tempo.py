"""Immutable resolved date-time value."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime
from functools import total_ordering
from typing import Any
from zoneinfo import ZoneInfo

from tempo.config.cascade import OptionsLike, build
from tempo.config.globals import get_default
from tempo.config.models import TempoConfig, TempoOptions
from tempo.parsing.inputs import interpret
from tempo.parsing.models import Provenance
from tempo.terms.models import Edge, Term
from tempo.utils.errors import TempoError
from tempo.utils.reporting import log_event, parse_logger, report

_TIMESTAMP_SCALE = {"ss": 10**9, "ms": 10**6, "us": 10**3, "ns": 1}


@total_ordering
class Tempo:
    """One absolute, timezone-aware instant with nanosecond precision.

    ``Tempo(value, options, reference=..., **overrides)`` interprets
    ``value`` under a private configuration: the process default overlaid
    with ``options`` then ``overrides``. ``reference`` stands in for "now".
    """

    __slots__ = ("_config", "_moment", "_nanosecond", "_provenance")

    def __init__(
        self,
        value: Any = None,
        options: OptionsLike | None = None,
        /,
        *,
        reference: datetime | date | None = None,
        **overrides: Any,
    ) -> None:
        config = build(get_default(), options, overrides or None)
        now = _now(config, reference)

        if isinstance(value, Tempo):
            moment = value._moment.astimezone(ZoneInfo(config.timezone))
            nanosecond, provenance = value._nanosecond, Provenance(kind="clone")
        else:
            try:
                moment, nanosecond, provenance = interpret(_unwrap(value), config, now)
            except TempoError as exc:
                report(config, exc)
                moment, nanosecond = now, 0
                provenance = Provenance(
                    kind="fallback",
                    fallback=True,
                    error=f"{type(exc).__name__}: {exc}",
                )

        object.__setattr__(self, "_config", config)
        object.__setattr__(self, "_moment", moment)
        object.__setattr__(self, "_nanosecond", nanosecond)
        object.__setattr__(self, "_provenance", provenance)

        if config.debug:
            log_event(
                parse_logger,
                logging.INFO,
                "parse",
                input=value if isinstance(value, (str, int, float)) else type(value).__name__,
                kind=provenance.kind,
                layout=provenance.layout,
                groups=dict(provenance.groups),
                result=self.isoformat(),
            )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def config(self) -> TempoConfig:
        return self._config

    @property
    def provenance(self) -> Provenance:
        return self._provenance

    @property
    def nanosecond(self) -> int:
        return self._nanosecond

    @property
    def epoch_ns(self) -> int:
        whole = int(self._moment.replace(microsecond=0).timestamp())
        return whole * 10**9 + self._moment.microsecond * 1_000 + self._nanosecond

    @property
    def ts(self) -> int:
        """Epoch count in the configured ``timestamp`` unit (floored)."""

        return self.epoch_ns // _TIMESTAMP_SCALE[self._config.timestamp]

    def to_datetime(self) -> datetime:
        return self._moment

    def isoformat(self) -> str:
        """Canonical absolute form; nine fraction digits when nanoseconds are set."""

        if not self._nanosecond:
            return self._moment.isoformat()
        base = self._moment.replace(microsecond=0).isoformat()
        stamp, offset = base[:19], base[19:]
        fraction = f"{self._moment.microsecond:06d}{self._nanosecond:03d}"
        return f"{stamp}.{fraction}{offset}"

    def term(self, name: str) -> tuple[str, datetime]:
        """Label and start of the ``name`` range containing this value."""

        return self._lookup_term(name).locate(self._moment)

    def term_boundary(self, name: str, label: str, edge: Edge = "start") -> datetime:
        return self._lookup_term(name).boundary(label, edge, self._moment)

    @staticmethod
    def compare(first: Any, second: Any = None) -> int:
        """Return -1, 0 or 1 ordering ``first`` against ``second`` (default now)."""

        left = first if isinstance(first, Tempo) else Tempo(first)
        right = second if isinstance(second, Tempo) else Tempo(second)
        return (left.epoch_ns > right.epoch_ns) - (left.epoch_ns < right.epoch_ns)

    def options(self) -> TempoOptions:
        return self._config.to_options()

    def _lookup_term(self, name: str) -> Term:
        for key, term in self._config.terms.items():
            if name in (key, term.key):
                return term
        raise KeyError(f"Unknown term: {name}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tempo):
            return NotImplemented
        return self.epoch_ns == other.epoch_ns

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Tempo):
            return NotImplemented
        return self.epoch_ns < other.epoch_ns

    def __hash__(self) -> int:
        return hash(self.epoch_ns)

    def __str__(self) -> str:
        return self.isoformat()

    def __repr__(self) -> str:
        return f"Tempo({self.isoformat()!r}, timezone={self._config.timezone!r})"


def _now(config: TempoConfig, reference: datetime | date | None) -> datetime:
    zone = ZoneInfo(config.timezone)
    if reference is None:
        return datetime.now(zone)
    if isinstance(reference, datetime):
        return reference.astimezone(zone) if reference.tzinfo else reference.replace(tzinfo=zone)
    return datetime(reference.year, reference.month, reference.day, tzinfo=zone)


def _unwrap(value: Any) -> Any:
    """Let a record carry another Tempo as its base value."""

    if isinstance(value, Mapping) and isinstance(value.get("value"), Tempo):
        base = value["value"]
        unwrapped = dict(value)
        unwrapped["value"] = base.to_datetime()
        unwrapped.setdefault("nanosecond", base.nanosecond)
        return unwrapped
    return value
