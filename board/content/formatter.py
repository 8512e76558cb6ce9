# board/content/formatter.py

from django.utils.safestring import mark_safe

from .config import get_formatter_config
from .pipeline import run_with_result
from .utils import deep_merge


class ContentFormatter:
    """
    Generates sanitized HTML from user-submitted content.

    Args:
        render_context: The ``RenderContext`` of the current view
        pipeline_options: Options merged over the configured defaults for every call
        config: A ``FormatterConfig``; the process-wide one when omitted
    """

    def __init__(self, render_context, pipeline_options=None, config=None):
        self.render_context = render_context
        self.pipeline_options = pipeline_options or {}
        self.config = config or get_formatter_config()

    def pipeline_filters(self):
        return self.config.registry.all_filters()

    def pipeline_options_for(self, options=None):
        merged = deep_merge(self.config.default_options, self.pipeline_options)
        if options:
            merged = deep_merge(merged, options)
        return merged

    def render(self, content, options=None) -> dict:
        """Run the pipeline and return its full result (``output``, ``mentioned_users``)."""
        return run_with_result(
            content or "",
            self.render_context,
            self.pipeline_options_for(options),
            self.pipeline_filters(),
        )

    def format_content(self, content, options=None):
        """
        Returns:
            Formatted, sanitized HTML marked safe for templates
        """
        return mark_safe(self.render(content, options)["output"])

    @staticmethod
    def quote_content(content: str) -> str:
        """Quote ``content`` for a reply: every line is prefixed with ``>``."""
        lines = content.split("\n")
        if content.endswith("\n"):
            lines.pop()
        return "".join(f"> {line}\n" if line else ">\n" for line in lines)
