# board/content/filters/markdown_filter.py

import markdown

from .base import Filter, FilterKind

DEFAULT_EXTENSIONS = [
    "markdown.extensions.extra",
    "markdown.extensions.sane_lists",
    # Forum posts keep the author's line breaks
    "markdown.extensions.nl2br",
]


class MarkdownFilter(Filter):
    """
    Render markdown to HTML with python-markdown.

    The extension list can be replaced through the ``markdown`` option::

        {"markdown": {"extensions": [...], "extension_configs": {...}}}
    """

    kind = FilterKind.MARKUP

    def call(self, content, context, options):
        config = options.get("markdown") or {}
        return markdown.markdown(
            content,
            extensions=config.get("extensions", DEFAULT_EXTENSIONS),
            extension_configs=config.get("extension_configs", {}),
            output_format="html",
        )
