from __future__ import annotations

from collections.abc import Iterator

import pytest

from tempo.config.globals import init, reset_default


@pytest.fixture(autouse=True)
def library_defaults() -> Iterator[None]:
    """Keep the host timezone and locale out of every test."""

    init(probe=False)
    yield
    reset_default()
