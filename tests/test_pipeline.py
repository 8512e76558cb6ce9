import pytest

from board.content.exceptions import ConfigurationError, FilterExecutionError
from board.content.filters import (
    AtMentionFilter,
    AutolinkFilter,
    Filter,
    FilterKind,
    FunctionFilter,
    MarkdownFilter,
    OneboxFilter,
    SanitizationFilter,
    SpoilerTagAfterMarkup,
    SpoilerTagBeforeMarkup,
    WrapIframesFilter,
)
from board.content.pipeline import STAGES, StageRegistry, default_registry, run, run_with_result


def _marker(kind, marker, seen=None):
    def append_marker(content, context, options):
        if seen is not None:
            seen.append((marker, content))
        return f"{content}|{marker}"

    return FunctionFilter(append_marker, kind, name=f"marker_{marker}")


def _marker_registry(seen=None):
    return StageRegistry(
        before_markup=[_marker(FilterKind.BEFORE_MARKUP, "b1", seen), _marker("before_markup", "b2", seen)],
        markup=[_marker(FilterKind.MARKUP, "m", seen)],
        after_markup=[_marker(FilterKind.AFTER_MARKUP, "a", seen)],
        sanitize=[_marker(FilterKind.SANITIZE, "s", seen)],
        after_sanitize=[_marker(FilterKind.AFTER_SANITIZE, "as", seen)],
    )


def test_stages_run_in_fixed_order(render_context):
    registry = _marker_registry()
    assert run("x", render_context, {}, registry.all_filters()) == "x|b1|b2|m|a|s|as"


def test_later_stage_observes_earlier_stage_output(render_context):
    seen = []
    registry = _marker_registry(seen)
    registry.markup = [MarkdownFilter()]

    run("*hi*", render_context, {}, registry.all_filters())

    after_markup_input = dict(seen)["a"]
    assert after_markup_input == "<p><em>hi</em>|b1|b2</p>"


def test_stage_order_does_not_depend_on_assignment_order(render_context):
    registry = StageRegistry()
    registry.after_sanitize = [_marker("after_sanitize", "as")]
    registry.before_markup = [_marker("before_markup", "b")]
    registry.markup.append(_marker("markup", "m"))

    assert run("", render_context, {}, registry.all_filters()) == "|b|m|as"


def test_options_and_context_reach_every_filter(render_context):
    received = []

    def record(content, context, options):
        received.append((context.render_context, options["asset_root"]))
        return content

    stages = [FunctionFilter(record, "markup"), FunctionFilter(record, "after_markup")]
    run("x", render_context, {"asset_root": "/static/"}, stages)

    assert received == [(render_context, "/static/"), (render_context, "/static/")]


def test_filters_cannot_mutate_options(render_context):
    options = {"asset_root": ""}

    def mutate(content, context, options):
        options["asset_root"] = "changed"
        return content

    with pytest.raises(FilterExecutionError) as excinfo:
        run("x", render_context, options, [FunctionFilter(mutate, "markup")])

    assert isinstance(excinfo.value.__cause__, TypeError)
    assert options == {"asset_root": ""}


def test_filters_cannot_mutate_nested_options(render_context):
    onebox_options = {"enabled": True, "timeout": 5.0}
    options = {"onebox": onebox_options, "markdown": {"extensions": ["markdown.extensions.extra"]}}

    def mutate(content, context, options):
        options["onebox"]["timeout"] = 99
        return content

    def extend(content, context, options):
        options["markdown"]["extensions"].append("evil")
        return content

    for func in (mutate, extend):
        with pytest.raises(FilterExecutionError) as excinfo:
            run("x", render_context, options, [FunctionFilter(func, "markup")])
        assert isinstance(excinfo.value.__cause__, (TypeError, AttributeError))

    assert onebox_options == {"enabled": True, "timeout": 5.0}
    assert options["markdown"]["extensions"] == ["markdown.extensions.extra"]


def test_results_are_collected_per_call(render_context):
    def count(content, context, options):
        context.result["calls"] = context.result.get("calls", 0) + 1
        return content

    stages = [FunctionFilter(count, "markup"), FunctionFilter(count, "after_markup")]

    first = run_with_result("x", render_context, {}, stages)
    second = run_with_result("y", render_context, {}, stages)

    assert first == {"calls": 2, "output": "x"}
    assert second == {"calls": 2, "output": "y"}


def test_filter_failure_is_wrapped_with_stage_and_name(render_context):
    calls = []

    def explode(content, context, options):
        raise ValueError("bad markup")

    def never(content, context, options):
        calls.append(content)
        return content

    stages = [
        _marker("markup", "m"),
        FunctionFilter(explode, "after_markup"),
        FunctionFilter(never, "sanitize"),
    ]

    with pytest.raises(FilterExecutionError) as excinfo:
        run("x", render_context, {}, stages)

    error = excinfo.value
    assert error.stage == "after_markup"
    assert error.filter_name == "explode"
    assert isinstance(error.__cause__, ValueError)
    assert calls == []


def test_filter_returning_non_string_fails(render_context):
    stages = [FunctionFilter(lambda content, context, options: None, "markup", name="broken")]

    with pytest.raises(FilterExecutionError) as excinfo:
        run("x", render_context, {}, stages)

    assert excinfo.value.filter_name == "broken"
    assert "NoneType" in str(excinfo.value)


def test_none_content_is_treated_as_empty(render_context):
    assert run(None, render_context, {}, [_marker("markup", "m")]) == "|m"


def test_all_filters_is_read_only():
    registry = _marker_registry()
    filters = registry.all_filters()

    assert isinstance(filters, tuple)
    with pytest.raises(AttributeError):
        filters.append(_marker("markup", "extra"))

    copy = list(filters)
    copy.clear()
    assert len(registry.all_filters()) == 6


def test_freeze_makes_stages_read_only():
    registry = _marker_registry().freeze()

    assert registry.frozen
    with pytest.raises(ConfigurationError):
        registry.markup = []
    with pytest.raises(AttributeError):
        registry.markup.append(_marker("markup", "late"))
    assert len(registry.all_filters()) == 6


def test_frozen_flag_cannot_be_reset():
    registry = _marker_registry().freeze()
    with pytest.raises(AttributeError):
        registry._frozen = False


def test_freeze_rejects_filters_in_the_wrong_stage():
    registry = StageRegistry(markup=[SanitizationFilter()])
    with pytest.raises(ConfigurationError):
        registry.freeze()
    assert not registry.frozen


def test_freeze_rejects_plain_callables():
    registry = StageRegistry(markup=[lambda content, context, options: content])
    with pytest.raises(ConfigurationError):
        registry.freeze()


def test_base_filter_requires_call():
    class Incomplete(Filter):
        kind = FilterKind.MARKUP

    with pytest.raises(FilterExecutionError) as excinfo:
        run("x", None, {}, [Incomplete()])
    assert isinstance(excinfo.value.__cause__, NotImplementedError)


def test_default_registry_contents():
    registry = default_registry()

    assert [stage for stage, _ in registry.stages()] == list(STAGES)
    assert [type(f) for f in registry.all_filters()] == [
        SpoilerTagBeforeMarkup,
        MarkdownFilter,
        AutolinkFilter,
        AtMentionFilter,
        SpoilerTagAfterMarkup,
        SanitizationFilter,
        OneboxFilter,
        WrapIframesFilter,
    ]
    registry.freeze()
