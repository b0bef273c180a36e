"""Library defaults loading."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from tempo.config.models import TempoOptions

_REQUIRED = ("timezone", "calendar", "locale", "pivot", "sphere", "timestamp", "layout")


def load_defaults(path: Path | None = None) -> TempoOptions:
    """Load and validate the library defaults from YAML."""

    defaults_path = path or Path(__file__).with_name("defaults.yaml")

    try:
        raw = yaml.safe_load(defaults_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Defaults file not found: {defaults_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in defaults file: {defaults_path}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Defaults file must contain a mapping: {defaults_path}")

    try:
        options = TempoOptions.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid defaults schema: {defaults_path}") from exc

    missing = [name for name in _REQUIRED if getattr(options, name) is None]
    if missing:
        raise ValueError(
            f"Defaults file is missing required keys {', '.join(missing)}: {defaults_path}"
        )
    return options
