"""Layout composer: expand ``{token}`` placeholders into anchored patterns.

Rules:
- A placeholder resolves through the instance snippet, then the global
  snippet; unknown tokens stay as literal text so they can be bound later.
- Fragments are expanded recursively; a token already being expanded on the
  current path is left literal instead of recursing forever.
- The second and later occurrence of a capture name is rewritten into a
  back-reference to the first, so repeated tokens denote the same value.
"""

from __future__ import annotations

import re

from tempo.tokens.registry import Snippets, Token, resolve

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_]\w*)\}")
_NAMED_GROUP_RE = re.compile(r"\(\?P<([A-Za-z_]\w*)>")
_REGEXP_LITERAL_RE = re.compile(r"^/(.*)/[a-zA-Z]*$", re.DOTALL)


def compile_layout(layout: str | re.Pattern[str], snippets: Snippets) -> re.Pattern[str]:
    """Translate a layout template into an anchored, case-insensitive pattern."""

    source = expand(layout, snippets)
    source = dedupe_captures(source)
    try:
        return re.compile(f"^(?:{source})$", re.IGNORECASE)
    except re.error as exc:
        raise ValueError(f"Invalid layout pattern: {source}") from exc


def expand(layout: str | re.Pattern[str], snippets: Snippets) -> str:
    """Fully expand placeholders in ``layout``."""

    source = layout.pattern if isinstance(layout, re.Pattern) else layout
    memo: dict[Token, str] = {}
    return _expand(_strip_delimiters(source), snippets, memo, frozenset())


def dedupe_captures(source: str) -> str:
    """Rewrite repeated named groups into back-references."""

    seen: set[str] = set()
    chunks: list[str] = []
    index = 0

    while index < len(source):
        char = source[index]
        if char == "\\":
            chunks.append(source[index : index + 2])
            index += 2
            continue
        if char == "[":
            end = _class_end(source, index)
            chunks.append(source[index:end])
            index = end
            continue

        match = _NAMED_GROUP_RE.match(source, index)
        if match is None:
            chunks.append(char)
            index += 1
            continue

        name = match.group(1)
        if name in seen:
            chunks.append(f"(?P={name})")
            index = _group_end(source, index)
            continue

        seen.add(name)
        chunks.append(match.group(0))
        index = match.end()

    return "".join(chunks)


def _expand(
    source: str,
    snippets: Snippets,
    memo: dict[Token, str],
    visiting: frozenset[Token],
) -> str:
    def substitute(match: re.Match[str]) -> str:
        token = resolve(match.group(1))
        if token in memo:
            return memo[token]
        if token in visiting:
            return match.group(0)

        fragment = snippets.lookup(token)
        if fragment is None or fragment == match.group(0):
            return match.group(0)

        expanded = f"(?:{_expand(_strip_delimiters(fragment), snippets, memo, visiting | {token})})"
        memo[token] = expanded
        return expanded

    return _PLACEHOLDER_RE.sub(substitute, source)


def _strip_delimiters(source: str) -> str:
    literal = _REGEXP_LITERAL_RE.match(source)
    if literal:
        source = literal.group(1)
    if source.startswith("^") and source.endswith("$") and not source.endswith("\\$"):
        source = source[1:-1]
    return source


def _class_end(source: str, start: int) -> int:
    index = start + 1
    if index < len(source) and source[index] == "^":
        index += 1
    if index < len(source) and source[index] == "]":
        index += 1

    while index < len(source):
        char = source[index]
        if char == "\\":
            index += 2
            continue
        if char == "]":
            return index + 1
        index += 1

    raise ValueError(f"Unterminated character class in pattern: {source}")


def _group_end(source: str, start: int) -> int:
    depth = 0
    index = start

    while index < len(source):
        char = source[index]
        if char == "\\":
            index += 2
            continue
        if char == "[":
            index = _class_end(source, index)
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1

    raise ValueError(f"Unbalanced group in pattern: {source}")
