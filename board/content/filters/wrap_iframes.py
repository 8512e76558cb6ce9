# board/content/filters/wrap_iframes.py

from ..utils import get_shared_soup, soup_to_html
from .base import Filter, FilterKind

WRAPPER_CLASS = "embed-16-by-9"


class WrapIframesFilter(Filter):
    """Wrap every iframe in a ``div`` that keeps a 16:9 aspect ratio."""

    kind = FilterKind.AFTER_SANITIZE

    def call(self, content, context, options):
        if "<iframe" not in content:
            return content

        soup = get_shared_soup(content, context)
        for iframe in soup.find_all("iframe"):
            parent = iframe.parent
            if parent is not None and parent.name == "div" and WRAPPER_CLASS in parent.get("class", []):
                continue
            iframe.wrap(soup.new_tag("div", attrs={"class": WRAPPER_CLASS}))

        return soup_to_html(context, soup)
