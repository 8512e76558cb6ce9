# board/content/filters/__init__.py

from .at_mention import AtMentionFilter
from .autolink import AutolinkFilter
from .base import Filter, FilterKind, FunctionFilter
from .markdown_filter import MarkdownFilter
from .onebox import OneboxFilter
from .sanitization import SanitizationFilter
from .spoiler_tag import SpoilerTagAfterMarkup, SpoilerTagBeforeMarkup
from .wrap_iframes import WrapIframesFilter

__all__ = (
    "AtMentionFilter",
    "AutolinkFilter",
    "Filter",
    "FilterKind",
    "FunctionFilter",
    "MarkdownFilter",
    "OneboxFilter",
    "SanitizationFilter",
    "SpoilerTagAfterMarkup",
    "SpoilerTagBeforeMarkup",
    "WrapIframesFilter",
)
