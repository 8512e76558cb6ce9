# board/content/config.py
"""
Process-wide formatter configuration.

The allowlist and the stage registry are built once, at startup, and shared
read-only by every render. ``BoardConfig.ready()`` builds them before any
request is served.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping

from django.conf import settings

from .allowlist import Allowlist, get_forum_allowlist
from .filters.onebox import DEFAULT_ONEBOX_OPTIONS
from .filters.sanitization import ALLOWLIST_OPTION
from .pipeline import StageRegistry, default_registry
from .utils import deep_merge, freeze_options

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormatterConfig:
    allowlist: Allowlist
    registry: StageRegistry
    default_options: Mapping[str, Any]


def get_default_options(allowlist: Allowlist) -> dict:
    """
    Options every render starts from.

    Settings:
        FORMATTER_ASSET_HOST: URL prefix for assets, ``""`` when unset
        FORMATTER_ONEBOX: Overrides for the onebox options
        FORMATTER_MARKDOWN: Overrides for the markdown options
    """
    options = {
        "asset_root": getattr(settings, "FORMATTER_ASSET_HOST", None) or "",
        ALLOWLIST_OPTION: allowlist,
        "onebox": deep_merge(DEFAULT_ONEBOX_OPTIONS, getattr(settings, "FORMATTER_ONEBOX", {}) or {}),
    }
    markdown_options = getattr(settings, "FORMATTER_MARKDOWN", None)
    if markdown_options:
        options["markdown"] = dict(markdown_options)
    return options


def build_config(registry: StageRegistry | None = None, allowlist: Allowlist | None = None) -> FormatterConfig:
    """Build and freeze a formatter configuration."""
    if allowlist is None:
        allowlist = get_forum_allowlist()
    if registry is None:
        registry = default_registry()
    registry.freeze()

    return FormatterConfig(
        allowlist=allowlist,
        registry=registry,
        default_options=freeze_options(get_default_options(allowlist)),
    )


@lru_cache(maxsize=1)
def get_formatter_config() -> FormatterConfig:
    """The process-wide configuration, built on first use."""
    config = build_config()
    logger.info(f"Content formatter configured: {config.registry!r}")
    return config
