"""Structured logging and the single error-reporting gate."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from tempo.utils.errors import TempoError

if TYPE_CHECKING:
    from tempo.config.models import TempoConfig

parse_logger = logging.getLogger("tempo.parse")
config_logger = logging.getLogger("tempo.config")


def log_event(logger: logging.Logger, level: int, event: str, /, **fields: Any) -> None:
    payload = {"event": event, **fields}
    logger.log(level, _dump_json(payload))


def report(config: TempoConfig, error: TempoError) -> None:
    """Log ``error`` when debugging or swallowing it; re-raise unless ``catch``."""

    if config.debug or config.catch:
        log_event(
            parse_logger,
            logging.WARNING,
            "parse_error",
            error=type(error).__name__,
            message=str(error),
            value=_printable(error.value),
            catch=config.catch,
            **({"detail": error.detail} if config.debug and error.detail else {}),
        )
    if not config.catch:
        raise error


def _printable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str)
