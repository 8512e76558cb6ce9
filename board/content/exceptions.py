# board/content/exceptions.py
"""Errors raised while configuring or running the content pipeline."""


class FormatterError(Exception):
    """Base class for content formatter errors."""


class ConfigurationError(FormatterError):
    """The allowlist or the stage registry is malformed."""


class FilterExecutionError(FormatterError):
    """A filter raised while transforming content.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, stage, filter_name, message=None):
        self.stage = stage
        self.filter_name = filter_name
        if message is None:
            message = f"Filter {filter_name!r} failed in stage {stage!r}"
        super().__init__(message)


class EmbedFetchError(FormatterError):
    """Fetching a link preview failed."""

    def __init__(self, url, message):
        self.url = url
        super().__init__(f"{url}: {message}")
