# board/content/filters/at_mention.py
"""
Link ``@name`` and ``@"name with spaces"`` mentions to user profiles.

Names are resolved in one batch through the render context's
``users_by_name``. Names it does not know stay plain text. The names that
were linked are reported in the run's result under ``mentioned_users``.
"""

import re

from bs4 import NavigableString

from ..utils import get_shared_soup, soup_to_html
from .base import Filter, FilterKind

MENTION_RE = re.compile(r'(?<![\w@.])@(?:"(?P<quoted>[^"\n]+)"|(?P<name>\w(?:[\w.-]*\w)?))')

IGNORE_PARENTS = {"a", "pre", "code"}


def _mention_name(match):
    return match.group("quoted") or match.group("name")


def _mentionable_strings(soup):
    for node in soup.find_all(string=MENTION_RE):
        # Skip comments, CDATA and friends
        if type(node) is not NavigableString:
            continue
        if any(parent.name in IGNORE_PARENTS for parent in node.parents):
            continue
        yield node


class AtMentionFilter(Filter):
    kind = FilterKind.AFTER_MARKUP

    def call(self, content, context, options):
        if "@" not in content:
            return content

        soup = get_shared_soup(content, context)
        nodes = list(_mentionable_strings(soup))
        names = {_mention_name(match) for node in nodes for match in MENTION_RE.finditer(node)}
        if not names:
            return content

        profile_urls = context.render_context.users_by_name(sorted(names))
        if not profile_urls:
            return content

        mentioned = context.result.setdefault("mentioned_users", [])
        for node in nodes:
            pieces = []
            cursor = 0
            text = str(node)
            for match in MENTION_RE.finditer(text):
                name = _mention_name(match)
                url = profile_urls.get(name)
                if url is None:
                    continue
                if match.start() > cursor:
                    pieces.append(NavigableString(text[cursor : match.start()]))
                link = soup.new_tag("a", href=url)
                link.string = f"@{name}"
                pieces.append(link)
                cursor = match.end()
                if name not in mentioned:
                    mentioned.append(name)
            if not pieces:
                continue
            if cursor < len(text):
                pieces.append(NavigableString(text[cursor:]))
            node.replace_with(*pieces)

        return soup_to_html(context, soup)
