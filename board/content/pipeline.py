# board/content/pipeline.py
"""
Stage registry and pipeline executor.

Filters are grouped in five stages that always run in the same order:

    before_markup -> markup -> after_markup -> sanitize -> after_sanitize

The registry is filled in at startup, frozen, and then only read.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .exceptions import ConfigurationError, FilterExecutionError
from .filters.base import Filter, FilterKind
from .utils import freeze_options

logger = logging.getLogger(__name__)

STAGES = tuple(kind.value for kind in FilterKind)


class StageRegistry:
    """
    The five ordered stage lists.

    Until ``freeze()`` is called each stage is a plain list that can be
    appended to or replaced. Afterwards the stages are tuples and replacing
    one raises ``ConfigurationError``.
    """

    def __init__(
        self,
        before_markup: Iterable[Filter] = (),
        markup: Iterable[Filter] = (),
        after_markup: Iterable[Filter] = (),
        sanitize: Iterable[Filter] = (),
        after_sanitize: Iterable[Filter] = (),
    ):
        object.__setattr__(self, "_frozen", False)
        self.before_markup = before_markup
        self.markup = markup
        self.after_markup = after_markup
        self.sanitize = sanitize
        self.after_sanitize = after_sanitize

    def __setattr__(self, name, value):
        if name in STAGES:
            if self._frozen:
                raise ConfigurationError(f"Stage {name!r} cannot be replaced after the registry is frozen")
            value = list(value)
        elif name == "_frozen":
            raise AttributeError("_frozen is managed by freeze()")
        object.__setattr__(self, name, value)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def stages(self) -> tuple[tuple[str, tuple[Filter, ...]], ...]:
        """``(stage name, filters)`` pairs in execution order."""
        return tuple((stage, tuple(getattr(self, stage))) for stage in STAGES)

    def all_filters(self) -> tuple[Filter, ...]:
        """All filters in execution order.

        The result is a fresh tuple; changing the registry requires going
        through the stage attributes before the registry is frozen.
        """
        return tuple(content_filter for _, filters in self.stages() for content_filter in filters)

    def validate(self) -> None:
        for stage, filters in self.stages():
            for content_filter in filters:
                if not isinstance(content_filter, Filter):
                    raise ConfigurationError(
                        f"Stage {stage!r} contains {content_filter!r}, which is not a Filter"
                    )
                if FilterKind(content_filter.kind).value != stage:
                    raise ConfigurationError(
                        f"{content_filter.name} is a {FilterKind(content_filter.kind).value} filter "
                        f"and cannot run in stage {stage!r}"
                    )

    def freeze(self) -> "StageRegistry":
        """Validate the stages and make the registry read-only."""
        if self._frozen:
            return self
        self.validate()
        for stage in STAGES:
            object.__setattr__(self, stage, tuple(getattr(self, stage)))
        object.__setattr__(self, "_frozen", True)
        return self

    def __repr__(self):
        counts = ", ".join(f"{stage}={len(getattr(self, stage))}" for stage in STAGES)
        return f"<StageRegistry {counts}{' frozen' if self._frozen else ''}>"


def default_registry() -> StageRegistry:
    """The forum's default stage contents (not frozen)."""
    from .filters import (
        AtMentionFilter,
        AutolinkFilter,
        MarkdownFilter,
        OneboxFilter,
        SanitizationFilter,
        SpoilerTagAfterMarkup,
        SpoilerTagBeforeMarkup,
        WrapIframesFilter,
    )

    return StageRegistry(
        before_markup=[
            SpoilerTagBeforeMarkup(),
        ],
        markup=[
            MarkdownFilter(),
        ],
        after_markup=[
            # Markdown does not autolink bare URLs
            AutolinkFilter(),
            AtMentionFilter(),
            SpoilerTagAfterMarkup(),
        ],
        sanitize=[
            SanitizationFilter(),
        ],
        after_sanitize=[
            OneboxFilter(),
            WrapIframesFilter(),
        ],
    )


@dataclass
class PipelineContext:
    """
    Per-call state shared by the filters of one run.

    ``result`` collects values filters report back to the caller
    (``output``, ``mentioned_users``); ``scratch`` holds caches such as the
    shared soup. Both are discarded when the run ends.
    """

    render_context: Any
    options: Mapping[str, Any]
    result: dict = field(default_factory=dict)
    scratch: dict = field(default_factory=dict)


def run_with_result(content: str, render_context, options: Mapping[str, Any], stages: Sequence[Filter]) -> dict:
    """
    Run ``stages`` over ``content`` in order.

    Returns:
        The result dict of the run; the rendered content is under ``output``

    Raises:
        FilterExecutionError: If a filter raises or returns something other than a string
    """
    options = freeze_options(options)
    context = PipelineContext(render_context=render_context, options=options)
    output = content if content is not None else ""

    for content_filter in stages:
        stage = FilterKind(content_filter.kind).value
        logger.debug(f"Running {content_filter.name} ({stage})")
        try:
            output = content_filter.call(output, context, options)
        except Exception as e:
            logger.error(f"Content filter {content_filter.name} failed in stage {stage}: {e}", exc_info=True)
            raise FilterExecutionError(stage, content_filter.name) from e

        if not isinstance(output, str):
            raise FilterExecutionError(
                stage,
                content_filter.name,
                f"Filter {content_filter.name!r} returned {type(output).__name__} instead of str",
            )

    context.result["output"] = output
    return context.result


def run(content: str, render_context, options: Mapping[str, Any], stages: Sequence[Filter]) -> str:
    """Run ``stages`` over ``content`` and return the final output."""
    return run_with_result(content, render_context, options, stages)["output"]
