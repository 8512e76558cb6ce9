# board/content/allowlist.py
"""
Sanitization allowlist: which elements, attributes, CSS properties and URL
schemes survive sanitization, plus the node transformers run on every
element that survives.

An allowlist is built once at startup by merging the forum additions into
the base allowlist and is read-only afterwards.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import bleach

from .exceptions import ConfigurationError

# Attribute key applying to every element.
WILDCARD = "*"

NodeTransformer = Callable[[Mapping[str, Any]], None]

_FIELDS = ("elements", "attributes", "css_properties", "protocols", "transformers")

# Absolute or protocol-relative URL.
EXTERNAL_HREF_RE = re.compile(r"^(?:[a-z]+:)?//")


def _freeze_names(value, field_name: str) -> frozenset[str]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ConfigurationError(f"Allowlist {field_name} must be a collection of names, got {value!r}")
    names = frozenset(value)
    for name in names:
        if not isinstance(name, str):
            raise ConfigurationError(f"Allowlist {field_name} entries must be strings, got {name!r}")
    return names


def _freeze_mapping(value, field_name: str) -> Mapping[str, frozenset[str]]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Allowlist {field_name} must be a mapping, got {type(value).__name__}")
    return MappingProxyType(
        {key: _freeze_names(names, f"{field_name}[{key!r}]") for key, names in value.items()}
    )


def _freeze_transformers(value) -> tuple[NodeTransformer, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ConfigurationError(f"Allowlist transformers must be a sequence, got {value!r}")
    transformers = tuple(value)
    for transformer in transformers:
        if not callable(transformer):
            raise ConfigurationError(f"Allowlist transformer {transformer!r} is not callable")
    return transformers


@dataclass(frozen=True)
class Allowlist:
    """Immutable sanitization allowlist."""

    elements: frozenset[str] = frozenset()
    attributes: Mapping[str, frozenset[str]] = field(default_factory=lambda: MappingProxyType({}))
    css_properties: frozenset[str] = frozenset()
    protocols: Mapping[str, frozenset[str]] = field(default_factory=lambda: MappingProxyType({}))
    transformers: tuple[NodeTransformer, ...] = ()

    def __post_init__(self):
        # Normalise whatever collections were passed in to read-only ones.
        object.__setattr__(self, "elements", _freeze_names(self.elements, "elements"))
        object.__setattr__(self, "attributes", _freeze_mapping(self.attributes, "attributes"))
        object.__setattr__(self, "css_properties", _freeze_names(self.css_properties, "css_properties"))
        object.__setattr__(self, "protocols", _freeze_mapping(self.protocols, "protocols"))
        object.__setattr__(self, "transformers", _freeze_transformers(self.transformers))

    @classmethod
    def from_mapping(cls, value: Mapping[str, Any], partial: bool = False) -> "Allowlist":
        """Build an allowlist from a plain mapping.

        A full allowlist must carry all five fields. With ``partial=True``
        missing fields are treated as empty.
        """
        if not isinstance(value, Mapping):
            raise ConfigurationError(f"Allowlist must be a mapping, got {type(value).__name__}")
        unknown = set(value) - set(_FIELDS)
        if unknown:
            raise ConfigurationError(f"Unknown allowlist fields: {', '.join(sorted(unknown))}")
        if not partial:
            missing = [name for name in _FIELDS if name not in value]
            if missing:
                raise ConfigurationError(f"Allowlist is missing fields: {', '.join(missing)}")
        return cls(**dict(value))

    def attributes_for(self, tag: str) -> frozenset[str]:
        """Attributes allowed on ``tag``, including the wildcard ones."""
        return self.attributes.get(tag, frozenset()) | self.attributes.get(WILDCARD, frozenset())

    @property
    def all_protocols(self) -> frozenset[str]:
        return frozenset().union(*self.protocols.values())


def _coerce(value, name: str, partial: bool) -> Allowlist:
    if isinstance(value, Allowlist):
        return value
    if value is None:
        raise ConfigurationError(f"{name} allowlist is missing")
    return Allowlist.from_mapping(value, partial=partial)


def _union_mappings(base, additions) -> dict[str, frozenset[str]]:
    merged = dict(base)
    for key, names in additions.items():
        merged[key] = merged.get(key, frozenset()) | names
    return merged


def merge(base, additions) -> Allowlist:
    """
    Merge ``additions`` into ``base``.

    Every set field is a union (per key for the attribute and protocol
    mappings); transformers of ``additions`` are appended after those of
    ``base``. Nothing is ever removed from ``base``.

    Args:
        base: A full allowlist, or a mapping with all allowlist fields
        additions: An allowlist or a mapping with any subset of the fields

    Raises:
        ConfigurationError: If ``base`` is missing or malformed
    """
    base = _coerce(base, "Base", partial=False)
    additions = _coerce(additions, "Additional", partial=True)

    return Allowlist(
        elements=base.elements | additions.elements,
        attributes=_union_mappings(base.attributes, additions.attributes),
        css_properties=base.css_properties | additions.css_properties,
        protocols=_union_mappings(base.protocols, additions.protocols),
        transformers=base.transformers + additions.transformers,
    )


def unwrap_orphan_list_items(env: Mapping[str, Any]) -> None:
    """Unwrap ``li`` elements that are not inside a list."""
    if env["node_name"] != "li":
        return
    node = env["node"]
    parent = node.parent
    if parent is None or parent.name not in ("ul", "ol"):
        node.unwrap()


def decorate_links(env: Mapping[str, Any]) -> None:
    """Default empty hrefs to ``#`` and open external links in a new tab."""
    if env["node_name"] != "a":
        return
    a_tag = env["node"]
    if not a_tag.get("href"):
        a_tag["href"] = "#"
    if EXTERNAL_HREF_RE.match(a_tag["href"]):
        a_tag["target"] = "_blank"
        a_tag["rel"] = "nofollow noopener"


def get_base_allowlist() -> Allowlist:
    """
    Conservative baseline: bleach's defaults widened with the block-level
    markup a markdown renderer produces.
    """
    elements = set(bleach.sanitizer.ALLOWED_TAGS).union(
        {
            # text
            "p",
            "br",
            "hr",
            "div",
            "del",
            "ins",
            "s",
            "strike",
            "sub",
            "sup",
            "kbd",
            "samp",
            "var",
            "q",
            "cite",
            "dfn",
            "mark",
            "small",
            "time",
            "wbr",
            # headings
            "h1",
            "h2",
            "h3",
            "h4",
            "h5",
            "h6",
            # lists
            "dl",
            "dt",
            "dd",
            # code
            "pre",
            # tables
            "table",
            "thead",
            "tbody",
            "tfoot",
            "tr",
            "th",
            "td",
            "caption",
            # media
            "img",
            # interactive
            "details",
            "summary",
        }
    )

    attributes = {tag: set(names) for tag, names in bleach.sanitizer.ALLOWED_ATTRIBUTES.items()}
    attributes.setdefault("img", set()).update({"src", "alt", "title", "width", "height"})
    attributes.setdefault("blockquote", set()).add("cite")
    attributes.setdefault("q", set()).add("cite")
    attributes.setdefault("del", set()).add("cite")
    attributes.setdefault("ins", set()).add("cite")
    attributes.setdefault("th", set()).update({"colspan", "rowspan", "align"})
    attributes.setdefault("td", set()).update({"colspan", "rowspan", "align"})
    attributes.setdefault("ol", set()).add("start")
    attributes.setdefault("time", set()).add("datetime")
    attributes[WILDCARD] = {"title", "lang", "dir", "tabindex"}

    return Allowlist(
        elements=elements,
        attributes=attributes,
        css_properties=(),
        protocols={
            "a": bleach.sanitizer.ALLOWED_PROTOCOLS,
            "img": {"http", "https"},
        },
        transformers=(unwrap_orphan_list_items,),
    )


FORUM_ADDITIONS = {
    "elements": ("abbr", "iframe", "span", "figure", "figcaption"),
    "transformers": (decorate_links,),
    "attributes": {
        "a": ("href", "rel"),
        "abbr": ("title",),
        "span": ("class",),
        "div": ("class",),
        "img": ("src", "longdesc", "class"),
        "th": ("style",),
        "td": ("style",),
        WILDCARD: (
            "aria-expanded",
            "aria-label",
            "aria-labelledby",
            "aria-live",
            "aria-hidden",
            "aria-pressed",
            "role",
        ),
    },
    "css_properties": ("text-align",),
}


def get_forum_allowlist(base=None) -> Allowlist:
    """The base allowlist extended with the forum's elements and attributes."""
    if base is None:
        base = get_base_allowlist()
    return merge(base, FORUM_ADDITIONS)
