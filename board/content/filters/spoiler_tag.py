# board/content/filters/spoiler_tag.py
"""
Spoiler tags: ``[spoiler]...[/spoiler]`` and ``<spoiler>...</spoiler>``.

The markdown renderer would escape or mangle the tags, so they are swapped
for opaque tokens before rendering and turned into HTML afterwards.

A spoiler whose opening tag is followed by a line break is a block spoiler
(its contents are rendered as paragraphs); anything else is inline.
"""

import re

from ..utils import get_shared_soup, soup_to_html
from .base import Filter, FilterKind

SPOILER_RE = re.compile(
    r"(?:\[spoiler\]|<spoiler>)(?P<body>.*?)(?:\[/spoiler\]|</spoiler>)",
    re.IGNORECASE | re.DOTALL,
)

# The carets end a URL for the autolinker, so a token never lands in an href.
BLOCK_START = "^^SPOILERBLOCKSTART7c1f^^"
BLOCK_END = "^^SPOILERBLOCKEND7c1f^^"
INLINE_START = "^^SPOILERINLINESTART7c1f^^"
INLINE_END = "^^SPOILERINLINEEND7c1f^^"
TOKENS = (BLOCK_START, BLOCK_END, INLINE_START, INLINE_END)

# Leading blockquote markers of a line, e.g. "> " or "> > ".
QUOTE_PREFIX_RE = re.compile(r"[ \t]*(?:>[ \t]?)+")

SUMMARY_TEXT = "Spoiler"

BLOCK_OPEN_HTML = (
    '<div class="spoiler" role="figure" tabindex="0" aria-expanded="false">'
    f'<div class="spoiler-summary" aria-hidden="false">{SUMMARY_TEXT}</div>'
    '<div class="spoiler-contents" aria-hidden="true">'
)
BLOCK_CLOSE_HTML = "</div></div>"
INLINE_OPEN_HTML = (
    '<span class="spoiler" role="figure" tabindex="0" aria-expanded="false">'
    f'<span class="spoiler-summary" aria-hidden="false">{SUMMARY_TEXT}</span>'
    '<span class="spoiler-contents" aria-hidden="true">'
)
INLINE_CLOSE_HTML = "</span></span>"


def _block_pattern(token):
    # Markdown wraps a token standing alone in its own paragraph.
    return re.compile(rf"(?:<p>\s*)?{re.escape(token)}(?:\s*</p>)?")


_BLOCK_START_RE = _block_pattern(BLOCK_START)
_BLOCK_END_RE = _block_pattern(BLOCK_END)


class SpoilerTagBeforeMarkup(Filter):
    kind = FilterKind.BEFORE_MARKUP

    def _quote_prefix(self, match):
        """The blockquote markers in front of the opening tag, if any."""
        text = match.string
        line_start = text.rfind("\n", 0, match.start()) + 1
        prefix = text[line_start : match.start()]
        if not QUOTE_PREFIX_RE.fullmatch(prefix):
            return ""
        return prefix.rstrip() + " "

    def _block(self, body, quote):
        lines = body.split("\n")
        if quote:
            # Lines inside a quoted spoiler carry the same markers
            markers = re.compile(rf"^[ \t]*(?:>[ \t]?){{0,{quote.count('>')}}}")
            lines = [markers.sub("", line) for line in lines]
        body_lines = "\n".join(lines).strip().split("\n")

        lines = ["", BLOCK_START, "", *body_lines, "", BLOCK_END, "", ""]
        return "".join(f"\n{quote}{line}" if line else f"\n{quote.rstrip()}" for line in lines)

    def _replace(self, match):
        body = match.group("body")
        if re.match(r"[ \t]*\r?\n", body):
            return self._block(body, self._quote_prefix(match))
        return f"{INLINE_START}{body}{INLINE_END}"

    def call(self, content, context, options):
        return SPOILER_RE.sub(self._replace, content)


class SpoilerTagAfterMarkup(Filter):
    kind = FilterKind.AFTER_MARKUP

    def _strip_tokens_from_attributes(self, content, context):
        soup = get_shared_soup(content, context)
        changed = False
        for tag in soup.find_all(True):
            for name, value in tag.attrs.items():
                values = value if isinstance(value, list) else [value]
                if not any(token in item for item in values for token in TOKENS):
                    continue
                for token in TOKENS:
                    values = [item.replace(token, "") for item in values]
                tag[name] = values if isinstance(value, list) else values[0]
                changed = True
        return soup_to_html(context, soup) if changed else content

    def call(self, content, context, options):
        if BLOCK_START not in content and INLINE_START not in content:
            return content
        # Markup is only spliced into text; tokens in attributes are dropped
        content = self._strip_tokens_from_attributes(content, context)
        content = _BLOCK_START_RE.sub(BLOCK_OPEN_HTML, content)
        content = _BLOCK_END_RE.sub(BLOCK_CLOSE_HTML, content)
        content = content.replace(INLINE_START, INLINE_OPEN_HTML)
        return content.replace(INLINE_END, INLINE_CLOSE_HTML)
