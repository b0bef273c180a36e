from __future__ import annotations

import pytest

from tempo.tokens.registry import Snippets, Token, allocate, register, resolve


def test_resolve_returns_cached_handle() -> None:
    first = resolve("dd")

    assert first is resolve("dd")
    assert first == Token("dd")
    assert str(first) == "dd"


def test_instance_registration_does_not_touch_global_table() -> None:
    scope = Snippets()
    token = scope.register("tst_instance_only", "abc")

    assert scope.lookup(token) == "abc"
    assert Snippets().lookup(token) is None


def test_global_registration_is_visible_to_new_scopes() -> None:
    token = register("tst_global_word", "(?:word)")

    assert Snippets().lookup(token) == "(?:word)"
    assert Snippets()[token] == "(?:word)"


def test_instance_binding_shadows_global_binding() -> None:
    token = register("tst_shadowed", "global")
    scope = Snippets()
    scope.register(token, "instance")

    assert scope.lookup(token) == "instance"
    assert Snippets().lookup(token) == "global"


def test_builtin_vocabulary_is_registered_globally() -> None:
    scope = Snippets()

    for name in ("yy", "mm", "dd", "hh", "mi", "ss", "ff", "mer", "wkd", "sep", "mod", "afx", "tzd", "sfx"):
        assert scope.lookup(resolve(name)) is not None


def test_overlay_copies_instance_bindings_independently() -> None:
    parent = Snippets()
    parent.register("tst_overlay", "x")
    child = parent.overlay()
    child.register("tst_overlay", "y")

    assert parent.lookup(resolve("tst_overlay")) == "x"
    assert child.lookup(resolve("tst_overlay")) == "y"
    assert dict(child.instance) == {resolve("tst_overlay"): "y"}


def test_allocate_returns_increasing_user_tokens() -> None:
    first = allocate()
    second = allocate()

    assert first.name.startswith("usr")
    assert int(second.name[3:]) == int(first.name[3:]) + 1
    assert resolve(second.name) is second


def test_missing_snippet_raises_key_error() -> None:
    with pytest.raises(KeyError):
        Snippets()[resolve("tst_never_bound")]


def test_register_rejects_unknown_scope() -> None:
    with pytest.raises(ValueError, match="Unsupported snippet scope"):
        Snippets().register("tst_scope", "x", scope="session")  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="registered on a Snippets scope"):
        register("tst_scope", "x", scope="instance")
