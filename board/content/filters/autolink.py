# board/content/filters/autolink.py

import bleach

from .base import Filter, FilterKind

SKIP_TAGS = ["pre", "code"]


class AutolinkFilter(Filter):
    """
    Turn bare URLs in text into links.

    Existing anchors and code are left alone. No link attributes are added
    here; the sanitizer's transformers decide ``target`` and ``rel``.
    """

    kind = FilterKind.AFTER_MARKUP

    def call(self, content, context, options):
        return bleach.linkify(content, callbacks=[], skip_tags=SKIP_TAGS, parse_email=False)
