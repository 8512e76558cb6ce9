# tests/conftest.py
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "ForumProject.settings")

import django

django.setup()

import pytest
from django.core.cache import cache

from board.content.context import RenderContext
from board.content.exceptions import EmbedFetchError
from board.content.filters import onebox
from board.content.pipeline import PipelineContext


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """Previews are never fetched for real; tests opt in by patching again."""

    def fetch_preview(url, timeout, max_bytes):
        raise EmbedFetchError(url, "network access disabled in tests")

    monkeypatch.setattr(onebox, "fetch_preview", fetch_preview)
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def users():
    return {"alice": "/users/alice", "Mary Jane": "/users/mary-jane"}


@pytest.fixture
def render_context(users):
    lookups = []

    def lookup(names):
        names = list(names)
        lookups.append(names)
        return {name: users[name] for name in names if name in users}

    context = RenderContext(asset_root="https://assets.example.com", user_lookup=lookup)
    context.lookups = lookups
    return context


@pytest.fixture
def make_context(render_context):
    def make(options=None):
        return PipelineContext(render_context=render_context, options=options or {})

    return make
