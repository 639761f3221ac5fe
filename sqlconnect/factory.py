from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from adapters.metrics.base import Metrics
from sqlconnect.dispatcher import Dispatcher
from sqlconnect.settings import Settings, get_settings
from sqlconnect.statements import StatementRegistry

log = logging.getLogger(__name__)


def build_registry(settings: Settings) -> StatementRegistry:
    """Fresh registry preloaded from YAML; names come from settings at expansion."""
    registry = StatementRegistry()
    path = Path(settings.statements_config_path)
    if path.exists():
        registry.load_yaml(path)
    else:
        log.debug("No statements config at %s", path)
    return registry


def build_dispatcher(
    settings: Optional[Settings] = None, *, metrics: Metrics | None = None
) -> Dispatcher:
    """
    Build a Dispatcher from configuration (dependency-injected).
    Falls back to environment settings when none are given.
    """
    settings = settings or get_settings()
    return Dispatcher(
        settings,
        statements=build_registry(settings),
        metrics=metrics,
    )
