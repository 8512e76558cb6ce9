# board/content/filters/base.py
"""
The filter interface shared by every pipeline step.

A filter declares which kind of content it consumes and produces. The kind
names the stage the filter belongs to:

    before_markup    markup -> markup
    markup           markup -> HTML
    after_markup     HTML -> HTML
    sanitize         HTML -> sanitized HTML
    after_sanitize   sanitized HTML -> trusted HTML
"""

from enum import Enum


class FilterKind(str, Enum):
    BEFORE_MARKUP = "before_markup"
    MARKUP = "markup"
    AFTER_MARKUP = "after_markup"
    SANITIZE = "sanitize"
    AFTER_SANITIZE = "after_sanitize"


class Filter:
    """
    Base class for pipeline filters.

    Subclasses set ``kind`` and implement ``call``. Filters are shared by
    every render in the process, so ``call`` must not store per-call state on
    the instance; use ``context.result`` for values a later step needs.
    """

    kind: FilterKind

    @property
    def name(self) -> str:
        return type(self).__name__

    def call(self, content: str, context, options) -> str:
        raise NotImplementedError

    def __repr__(self):
        return f"<{self.name} {self.kind.value}>"


class FunctionFilter(Filter):
    """Adapt a plain ``func(content, context, options)`` function to a filter."""

    def __init__(self, func, kind, name=None):
        self.func = func
        self.kind = FilterKind(kind)
        self._name = name or getattr(func, "__name__", repr(func))

    @property
    def name(self) -> str:
        return self._name

    def call(self, content, context, options):
        return self.func(content, context, options)
