"""Helpers shared by the content filters."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from bs4 import BeautifulSoup

_SHARED_SOUP_KEY = "__shared_soup"
_SHARED_SOURCE_KEY = "__shared_soup_source"


def get_shared_soup(html: str, context) -> BeautifulSoup:
    """Return a shared BeautifulSoup instance for the given HTML.
    Consecutive DOM filters often parse the same HTML. The parsed tree is
    cached in the per-call pipeline context and reused as long as the HTML
    handed to the next filter is the string the tree was serialised to.
    """
    scratch = context.scratch
    soup = scratch.get(_SHARED_SOUP_KEY)
    source = scratch.get(_SHARED_SOURCE_KEY)
    if soup is None or source != html:
        soup = BeautifulSoup(html, "html.parser")
        scratch[_SHARED_SOUP_KEY] = soup
        scratch[_SHARED_SOURCE_KEY] = html
    return soup


def soup_to_html(context, soup: BeautifulSoup | None = None) -> str:
    """Serialise the shared soup back to HTML and update the cache."""
    scratch = context.scratch
    if soup is None:
        soup = scratch.get(_SHARED_SOUP_KEY)
    html = str(soup) if soup is not None else ""
    scratch[_SHARED_SOURCE_KEY] = html
    scratch[_SHARED_SOUP_KEY] = soup
    return html


def deep_merge(base: Mapping, overrides: Mapping) -> dict:
    """
    Merge ``overrides`` into a copy of ``base``.

    Nested mappings are merged key by key; any other value in ``overrides``
    replaces the one in ``base``. Nested mappings in the result are fresh
    dicts, so neither argument is modified or shared with the result.
    """
    merged = {key: _copy(value) for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = _copy(value)
    return merged


def _copy(value):
    if isinstance(value, Mapping):
        return deep_merge(value, {})
    return value


def freeze_options(options: Mapping) -> Mapping:
    """Read-only view of ``options``; nested mappings and lists are frozen too."""
    return MappingProxyType({key: _freeze(value) for key, value in options.items()})


def _freeze(value):
    if isinstance(value, Mapping):
        return freeze_options(value)
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value
