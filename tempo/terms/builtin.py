"""Built-in term definitions: quarter, season, zodiac and daily timeline."""

from __future__ import annotations

from types import MappingProxyType

from tempo.terms.models import Term, TermRange

NORTH_SEASONS = (
    TermRange("Spring", month=3, day=20, traits=MappingProxyType({"symbol": "Flower"})),
    TermRange("Summer", month=6, day=21, traits=MappingProxyType({"symbol": "Sun"})),
    TermRange("Autumn", month=9, day=23, traits=MappingProxyType({"symbol": "Leaf"})),
    TermRange("Winter", month=12, day=22, traits=MappingProxyType({"symbol": "Snowflake"})),
)

SOUTH_SEASONS = (
    TermRange("Spring", month=9, day=1, traits=MappingProxyType({"symbol": "Flower"})),
    TermRange("Summer", month=12, day=1, traits=MappingProxyType({"symbol": "Sun"})),
    TermRange("Autumn", month=3, day=1, traits=MappingProxyType({"symbol": "Leaf"})),
    TermRange("Winter", month=6, day=1, traits=MappingProxyType({"symbol": "Snowflake"})),
)

ZODIAC = tuple(
    TermRange(label, month=month, day=day, traits=MappingProxyType({"symbol": symbol}))
    for label, month, day, symbol in (
        ("Aquarius", 1, 20, "Water-bearer"),
        ("Pisces", 2, 19, "Fish"),
        ("Aries", 3, 21, "Ram"),
        ("Taurus", 4, 20, "Bull"),
        ("Gemini", 5, 21, "Twins"),
        ("Cancer", 6, 22, "Crab"),
        ("Leo", 7, 23, "Lion"),
        ("Virgo", 8, 23, "Maiden"),
        ("Libra", 9, 23, "Scales"),
        ("Scorpio", 10, 23, "Scorpion"),
        ("Sagittarius", 11, 22, "Centaur"),
        ("Capricorn", 12, 22, "Goat"),
    )
)

TIMELINE = (
    TermRange("midnight", hour=0),
    TermRange("early", hour=4),
    TermRange("morning", hour=8),
    TermRange("midmorning", hour=10),
    TermRange("midday", hour=12),
    TermRange("afternoon", hour=15),
    TermRange("evening", hour=18),
    TermRange("night", hour=20),
)


def quarter_term(sphere: str, fiscal: int | None) -> Term:
    """Fiscal quarters; Q1 starts at ``fiscal``, else January (north) or July (south)."""

    first = fiscal or (1 if sphere == "north" else 7)
    ranges = tuple(
        TermRange(f"Q{index + 1}", month=(first - 1 + index * 3) % 12 + 1, day=1)
        for index in range(4)
    )
    return Term(name="quarter", key="qtr", description="Fiscal quarter", ranges=ranges)


def season_term(sphere: str, fiscal: int | None) -> Term:
    if sphere == "north":
        ranges, description = NORTH_SEASONS, "Astronomical season"
    else:
        ranges, description = SOUTH_SEASONS, "Meteorological season"
    return Term(name="season", key="szn", description=description, ranges=ranges)


def zodiac_term(sphere: str, fiscal: int | None) -> Term:
    return Term(
        name="zodiac",
        key="zdc",
        description="Astrological zodiac sign",
        ranges=ZODIAC,
        parseable=False,
    )


def timeline_term(sphere: str, fiscal: int | None) -> Term:
    return Term(
        name="timeline",
        key="per",
        description="Daily time period",
        ranges=TIMELINE,
        cycle="day",
        parseable=False,
    )
