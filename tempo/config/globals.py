"""Process-wide default configuration and its one-time initialization."""

from __future__ import annotations

import locale
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any

from tzlocal import get_localzone_name

from tempo.config.cascade import OptionsLike, build, coerce_options, refresh
from tempo.config.models import TempoConfig, TempoOptions
from tempo.config.store import PreferenceStore
from tempo.tokens.registry import generation
from tempo.utils.reporting import config_logger, log_event

DEFAULT_TIMEOUT = 2.0

_default: TempoConfig | None = None
_lock = threading.Lock()


def init(
    options: OptionsLike | None = None,
    *,
    store: PreferenceStore | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    probe: bool = True,
) -> TempoConfig:
    """(Re)build the process default: defaults < host < preferences < ``options``.

    The host probe and the preference read run on a worker thread bounded
    by ``timeout``; if they fail or time out, initialization proceeds with
    whatever was gathered so far.
    """

    global _default

    config = _initialize(coerce_options(options), store, timeout, probe)
    with _lock:
        _default = config
    return config


def get_default() -> TempoConfig:
    """Return the process default, initializing it once on first use.

    First use probes the host under the same timeout as ``init``. A default
    built before a later global snippet registration is recompiled here.
    """

    global _default

    config = _default
    if config is not None and config.generation == generation():
        return config
    with _lock:
        if _default is None:
            _default = _initialize(TempoOptions(), None, DEFAULT_TIMEOUT, True)
        else:
            _default = refresh(_default)
        return _default


def _initialize(
    overrides: TempoOptions,
    store: PreferenceStore | None,
    timeout: float,
    probe: bool,
) -> TempoConfig:
    key = overrides.store or "$Tempo"
    gathered: list[TempoOptions] = []

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tempo-init")
    try:
        future = executor.submit(_gather, probe, store, key)
        gathered = future.result(timeout=timeout)
    except FutureTimeout:
        log_event(config_logger, logging.WARNING, "init_timeout", timeout=timeout)
    except (OSError, ValueError) as exc:
        log_event(
            config_logger,
            logging.WARNING,
            "init_failed",
            error=type(exc).__name__,
            message=str(exc),
        )
    finally:
        executor.shutdown(wait=False)

    return _build_soft(gathered, overrides)


def reset_default() -> None:
    global _default

    with _lock:
        _default = None


def persist(store: PreferenceStore, config: TempoConfig | None = None) -> None:
    """Write the scalar options of ``config`` (default: the process default)."""

    config = config or get_default()
    store.set(config.store, config.to_options().model_dump(mode="json", exclude_none=True))


def _gather(probe: bool, store: PreferenceStore | None, key: str) -> list[TempoOptions]:
    layers: list[TempoOptions] = []
    if probe:
        layers.append(_host_options())
    if store is not None:
        stored = store.get(key)
        if stored:
            layers.append(coerce_options(stored))
    return layers


def _host_options() -> TempoOptions:
    values: dict[str, Any] = {}
    try:
        values["timezone"] = get_localzone_name()
    except (KeyError, ValueError, OSError) as exc:
        log_event(config_logger, logging.WARNING, "probe_failed", probe="timezone", message=str(exc))

    host_locale = locale.getlocale()[0]
    if host_locale and host_locale not in ("C", "POSIX"):
        values["locale"] = host_locale
    return TempoOptions.model_validate(values)


def _build_soft(gathered: list[TempoOptions], overrides: TempoOptions) -> TempoConfig:
    """Drop host/stored layers that do not resolve; caller overrides must."""

    usable: list[TempoOptions] = []
    for layer in gathered:
        try:
            build(None, *usable, layer)
        except ValueError as exc:
            log_event(
                config_logger,
                logging.WARNING,
                "layer_skipped",
                message=str(exc),
                layer=layer.model_dump(mode="json", exclude_none=True),
            )
            continue
        usable.append(layer)
    return build(None, *usable, overrides)
