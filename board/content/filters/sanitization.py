# board/content/filters/sanitization.py

import logging

import bleach
from bleach.css_sanitizer import CSSSanitizer
from bs4 import BeautifulSoup

from ..allowlist import Allowlist
from ..exceptions import ConfigurationError
from ..utils import get_shared_soup, soup_to_html
from .base import Filter, FilterKind

logger = logging.getLogger(__name__)

ALLOWLIST_OPTION = "allowlist"

# Dropped together with their contents rather than unwrapped.
REMOVE_CONTENTS = ["script", "style"]


class SanitizationFilter(Filter):
    """
    Enforce the allowlist found in ``options["allowlist"]``.

    Disallowed elements are stripped (their text is kept and escaped),
    disallowed attributes, URL schemes and CSS properties are dropped, and
    then every allowlist transformer runs on every remaining element.
    """

    kind = FilterKind.SANITIZE

    def _allowlist(self, options) -> Allowlist:
        allowlist = options.get(ALLOWLIST_OPTION)
        if not isinstance(allowlist, Allowlist):
            raise ConfigurationError(
                f"Option {ALLOWLIST_OPTION!r} must be an Allowlist, got {type(allowlist).__name__}"
            )
        return allowlist

    def clean(self, html: str, allowlist: Allowlist) -> str:
        soup = BeautifulSoup(html, "html.parser")
        for node in soup.find_all(REMOVE_CONTENTS):
            node.decompose()

        return bleach.clean(
            str(soup),
            tags=allowlist.elements,
            attributes={tag: sorted(names) for tag, names in allowlist.attributes.items()},
            protocols=allowlist.all_protocols,
            strip=True,
            strip_comments=True,
            css_sanitizer=CSSSanitizer(allowed_css_properties=allowlist.css_properties),
        )

    def call(self, content, context, options):
        allowlist = self._allowlist(options)
        cleaned = self.clean(content, allowlist)

        soup = get_shared_soup(cleaned, context)
        for node in soup.find_all(True):
            env = {
                "node_name": node.name,
                "node": node,
                "allowlist": allowlist,
                "options": options,
            }
            for transformer in allowlist.transformers:
                transformer(env)

        return soup_to_html(context, soup)
