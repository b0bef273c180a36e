"""Token handles and scoped snippet tables."""

from __future__ import annotations

import re
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal

from tempo.tokens.snippets import BUILTIN_SNIPPETS

Scope = Literal["global", "instance"]

_USER_TOKEN_RE = re.compile(r"usr([0-9]+)")


@dataclass(frozen=True)
class Token:
    """Stable handle naming a snippet, layout or capture group."""

    name: str

    def __str__(self) -> str:
        return self.name


_tokens: dict[str, Token] = {}
_tokens_lock = threading.Lock()


def resolve(name: str) -> Token:
    """Return the cached token for ``name``, allocating it on first use."""

    token = _tokens.get(name)
    if token is not None:
        return token
    with _tokens_lock:
        return _tokens.setdefault(name, Token(name))


def allocate() -> Token:
    """Allocate the next anonymous ``usrN`` token."""

    with _tokens_lock:
        used = [0]
        for name in _tokens:
            match = _USER_TOKEN_RE.fullmatch(name)
            if match:
                used.append(int(match.group(1)))
        name = f"usr{max(used) + 1}"
        token = Token(name)
        _tokens[name] = token
        return token


_global_table: dict[Token, str] = {
    resolve(name): fragment for name, fragment in BUILTIN_SNIPPETS.items()
}
_global_lock = threading.Lock()
_generation = 0


def generation() -> int:
    """Count of global snippet registrations; compiled patterns record it."""

    return _generation


class Snippets(Mapping[Token, str]):
    """Snippet lookup for one scope.

    Instance bindings shadow the process-wide table without mutating it.
    Bindings are never removed.
    """

    def __init__(self, instance: Mapping[Token, str] | None = None) -> None:
        self._instance: dict[Token, str] = dict(instance or {})

    def register(self, name: str | Token, fragment: str, scope: Scope = "instance") -> Token:
        global _generation

        token = name if isinstance(name, Token) else resolve(name)
        if scope == "global":
            with _global_lock:
                _global_table[token] = fragment
                _generation += 1
        elif scope == "instance":
            self._instance[token] = fragment
        else:
            raise ValueError(f"Unsupported snippet scope: {scope}")
        return token

    def lookup(self, token: Token) -> str | None:
        fragment = self._instance.get(token)
        if fragment is None:
            fragment = _global_table.get(token)
        return fragment

    def overlay(self) -> Snippets:
        """Return a child scope seeded with this scope's instance bindings."""

        return Snippets(self._instance)

    @property
    def instance(self) -> Mapping[Token, str]:
        return MappingProxyType(self._instance)

    def __getitem__(self, token: Token) -> str:
        fragment = self.lookup(token)
        if fragment is None:
            raise KeyError(token)
        return fragment

    def __iter__(self) -> Iterator[Token]:
        seen = dict.fromkeys(self._instance)
        seen.update(dict.fromkeys(_global_table))
        return iter(seen)

    def __len__(self) -> int:
        return len(set(self._instance) | set(_global_table))


def register(name: str | Token, fragment: str, scope: Scope = "global") -> Token:
    """Bind ``fragment`` in the process-wide snippet table."""

    if scope != "global":
        raise ValueError("Instance snippets are registered on a Snippets scope")
    return Snippets().register(name, fragment, scope="global")
