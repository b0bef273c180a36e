"""Elementary pattern fragments composed into layouts.

Fragments may reference other tokens as ``{name}``; the composer expands
them. Computed fragments (``dt``, ``tm``, ``evt``, ``per``, ``term``) are
bound per configuration by the cascade.
"""

from __future__ import annotations

SEPARATORS = r"[/\-.\s,]"
MODIFIERS = r"[+\-<>]=?|this|next|prev|last"
RELATIVE = r"ago|hence"

MONTH_NAMES = (
    r"Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?"
    r"|Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?"
)
WEEKDAY_NAMES = (
    r"Mon(?:day)?|Tue(?:s(?:day)?)?|Wed(?:nesday)?|Thu(?:r(?:s(?:day)?)?)?"
    r"|Fri(?:day)?|Sat(?:urday)?|Sun(?:day)?"
)

BUILTIN_SNIPPETS: dict[str, str] = {
    "yy": r"(?P<yy>(?:[0-9]{2})?[0-9]{2})",
    "mm": rf"(?P<mm>[0\s]?[1-9]|1[0-2]|{MONTH_NAMES})",
    "dd": r"(?P<dd>[0\s]?[1-9]|[12][0-9]|3[01])",
    "hh": r"(?P<hh>2[0-4]|[01]?[0-9])",
    "mi": r"(?::(?P<mi>[0-5][0-9]))",
    "ss": r"(?::(?P<ss>[0-5][0-9]))",
    "ff": r"(?:\.(?P<ff>[0-9]{1,9}))",
    "mer": r"(?:\s*(?P<mer>am|pm))",
    "wkd": rf"(?P<wkd>{WEEKDAY_NAMES})",
    "sep": rf"(?:{SEPARATORS})",
    "mod": rf"(?:(?P<mod>{MODIFIERS})?(?P<cnt>[0-9]*)\s*)",
    "afx": rf"(?:s?\s+(?P<afx>{RELATIVE}))",
    "ofs": r"(?:\s*(?P<ofs>[+\-][0-9]+))",
    "tzd": r"(?P<tzd>Z|[+\-](?:0[0-9]|1[0-4]):?[0-5][0-9])",
    "sfx": r"(?:(?:{sep}+|T)(?:{tm}){tzd}?)",
}

TIME_GROUPS = frozenset({"hh", "mi", "ss", "ff", "mer", "tzd"})
