# board/content/__init__.py

from .allowlist import Allowlist, get_base_allowlist, get_forum_allowlist, merge
from .context import RenderContext
from .exceptions import ConfigurationError, FilterExecutionError, FormatterError
from .formatter import ContentFormatter
from .pipeline import StageRegistry, default_registry, run

__all__ = (
    "Allowlist",
    "ConfigurationError",
    "ContentFormatter",
    "FilterExecutionError",
    "FormatterError",
    "RenderContext",
    "StageRegistry",
    "default_registry",
    "get_base_allowlist",
    "get_forum_allowlist",
    "merge",
    "run",
)
