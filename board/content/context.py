# board/content/context.py
"""The rendering context handed to every filter."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping

from django.conf import settings

UserLookup = Callable[[Iterable[str]], Mapping[str, str]]


class RenderContext:
    """
    What the view layer tells the filters about the current render.

    Args:
        asset_root: URL prefix for static assets
        request: The current Django request, if any
        user_lookup: Callable mapping mentioned names to profile URLs
    """

    def __init__(self, asset_root: str = "", request=None, user_lookup: UserLookup | None = None):
        self.asset_root = asset_root
        self.request = request
        self._user_lookup = user_lookup

    @classmethod
    def from_request(cls, request, user_lookup: UserLookup | None = None, asset_root: str | None = None):
        """Context for a view; the asset root defaults to ``FORMATTER_ASSET_HOST``."""
        if asset_root is None:
            asset_root = getattr(settings, "FORMATTER_ASSET_HOST", None) or ""
        return cls(asset_root=asset_root, request=request, user_lookup=user_lookup)

    def users_by_name(self, names: Iterable[str]) -> Mapping[str, str]:
        """Profile URLs of the users among ``names``; unknown names are absent."""
        if self._user_lookup is None:
            return {}
        return self._user_lookup(names)
