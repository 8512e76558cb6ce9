# board/content/filters/onebox.py
"""
Expand bare links into rich previews.

A paragraph that holds nothing but a link to an absolute http(s) URL whose
text is the URL itself is replaced with a preview:

- YouTube links become an embedded player, without any network access.
- Any other page is fetched and its OpenGraph metadata (falling back to
  ``<title>`` and the description meta tag) is rendered into an
  ``aside.onebox``.

Previews are cached with Django's cache; failed lookups are cached for a
shorter time and leave the link as it was. Only hosts that resolve to
public addresses are fetched, redirects included.
"""

import hashlib
import ipaddress
import logging
import re
import socket
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup, NavigableString, Tag
from django.core.cache import cache

from ..exceptions import EmbedFetchError
from ..utils import get_shared_soup, soup_to_html
from .base import Filter, FilterKind

logger = logging.getLogger(__name__)

DEFAULT_ONEBOX_OPTIONS = {
    "enabled": True,
    "timeout": 5.0,
    "cache_timeout": 60 * 60 * 24,
    # Failures are often transient (timeouts, 503s)
    "miss_cache_timeout": 60 * 5,
    # Metadata lives in <head>; no need to read whole pages
    "max_bytes": 512 * 1024,
}

USER_AGENT = "ForumBoard-Onebox/0.1"

YOUTUBE_RE = re.compile(
    r"^https?://(?:www\.|m\.)?(?:youtube\.com/watch\?(?:[^#\s]*&)?v=|youtu\.be/)(?P<id>[\w-]{11})"
)
HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

MAX_DESCRIPTION_LENGTH = 300


def parse_preview(html: str, url: str) -> dict:
    """Extract preview metadata from a fetched page."""
    soup = BeautifulSoup(html, "html.parser")

    def meta(*keys):
        for key in keys:
            tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
            if tag and tag.get("content", "").strip():
                return tag["content"].strip()
        return ""

    title = meta("og:title", "twitter:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()
    if not title:
        raise EmbedFetchError(url, "page has no title")

    description = meta("og:description", "twitter:description", "description")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        description = description[: MAX_DESCRIPTION_LENGTH - 1].rstrip() + "…"

    image = meta("og:image", "twitter:image")
    if not HTTP_URL_RE.match(image):
        image = ""

    return {
        "url": url,
        "title": title,
        "description": description,
        "image": image,
        "site_name": meta("og:site_name") or urlparse(url).hostname or url,
    }


def _resolve_addresses(host: str) -> list[str]:
    try:
        infos = socket.getaddrinfo(host, None)
    except (socket.gaierror, UnicodeError) as e:
        raise EmbedFetchError(host, f"cannot resolve host: {e}") from e
    # Drop IPv6 scope ids such as "%eth0"
    return [info[4][0].split("%", 1)[0] for info in infos]


def check_public_host(host: str) -> None:
    """
    Refuse hosts that are, or resolve to, private, loopback, link-local or
    otherwise non-global addresses.

    Raises:
        EmbedFetchError: If any address of ``host`` is not public
    """
    try:
        addresses = [ipaddress.ip_address(host)]
    except ValueError:
        addresses = [ipaddress.ip_address(address) for address in _resolve_addresses(host)]
    if not addresses:
        raise EmbedFetchError(host, "host has no addresses")
    for address in addresses:
        if not address.is_global:
            raise EmbedFetchError(host, f"refusing to fetch from non-public address {address}")


def _guard_request(request: httpx.Request) -> None:
    check_public_host(request.url.host)


def fetch_preview(url: str, timeout: float, max_bytes: int) -> dict:
    """
    Fetch ``url`` and extract its preview metadata.

    Raises:
        EmbedFetchError: If the request fails or the page has no usable metadata
    """
    try:
        with httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            event_hooks={"request": [_guard_request]},
        ) as client:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                content_type = response.headers.get("content-type", "")
                if "html" not in content_type:
                    raise EmbedFetchError(url, f"unsupported content type {content_type!r}")
                body = b""
                for chunk in response.iter_bytes():
                    body += chunk
                    if len(body) >= max_bytes:
                        break
                encoding = response.encoding or "utf-8"
    except httpx.HTTPError as e:
        raise EmbedFetchError(url, str(e)) from e

    return parse_preview(body[:max_bytes].decode(encoding, errors="replace"), url)


def _cache_key(url: str) -> str:
    return "onebox:" + hashlib.sha256(url.encode("utf-8")).hexdigest()


def _bare_link(paragraph: Tag):
    """The only child of ``paragraph`` if it is a bare external link."""
    children = [
        child for child in paragraph.children if not (isinstance(child, NavigableString) and not child.strip())
    ]
    if len(children) != 1 or not isinstance(children[0], Tag) or children[0].name != "a":
        return None
    link = children[0]
    href = link.get("href", "")
    if not HTTP_URL_RE.match(href):
        return None
    text = link.get_text(strip=True)
    if text not in (href, href.split("://", 1)[1]):
        return None
    return link


class OneboxFilter(Filter):
    kind = FilterKind.AFTER_SANITIZE

    def _settings(self, options):
        return {**DEFAULT_ONEBOX_OPTIONS, **(options.get("onebox") or {})}

    def lookup(self, url: str, settings: dict) -> dict:
        """Cached preview for ``url``; an empty dict when there is none."""
        key = _cache_key(url)
        preview = cache.get(key)
        if preview is not None:
            return preview

        try:
            preview = fetch_preview(url, settings["timeout"], settings["max_bytes"])
        except EmbedFetchError as e:
            logger.warning(f"Onebox preview unavailable: {e}")
            cache.set(key, {}, settings["miss_cache_timeout"])
            return {}

        cache.set(key, preview, settings["cache_timeout"])
        return preview

    def _youtube_embed(self, soup, video_id):
        return soup.new_tag(
            "iframe",
            attrs={
                "src": f"https://www.youtube.com/embed/{video_id}",
                "width": "560",
                "height": "315",
                "frameborder": "0",
                "allowfullscreen": "",
                "title": "YouTube video",
            },
        )

    def _link(self, soup, url, text):
        link = soup.new_tag("a", attrs={"href": url, "target": "_blank", "rel": "nofollow noopener"})
        link.string = text
        return link

    def _preview_box(self, soup, preview):
        aside = soup.new_tag("aside", attrs={"class": "onebox"})

        header = soup.new_tag("header", attrs={"class": "onebox-source"})
        header.append(self._link(soup, preview["url"], preview["site_name"]))
        aside.append(header)

        body = soup.new_tag("article", attrs={"class": "onebox-body"})
        if preview.get("image"):
            body.append(soup.new_tag("img", attrs={"class": "onebox-thumbnail", "src": preview["image"], "alt": ""}))
        heading = soup.new_tag("h3")
        heading.append(self._link(soup, preview["url"], preview["title"]))
        body.append(heading)
        if preview.get("description"):
            description = soup.new_tag("p")
            description.string = preview["description"]
            body.append(description)
        aside.append(body)
        return aside

    def call(self, content, context, options):
        settings = self._settings(options)
        if not settings["enabled"] or "<a" not in content:
            return content

        soup = get_shared_soup(content, context)
        for paragraph in soup.find_all("p"):
            link = _bare_link(paragraph)
            if link is None:
                continue
            url = link["href"]

            youtube = YOUTUBE_RE.match(url)
            if youtube:
                paragraph.replace_with(self._youtube_embed(soup, youtube.group("id")))
                continue

            preview = self.lookup(url, settings)
            if preview:
                paragraph.replace_with(self._preview_box(soup, preview))

        return soup_to_html(context, soup)
