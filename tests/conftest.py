"""
Pytest configuration and fixtures for Pancakes tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from pancakes.factories import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from pancakes.config import AppConfig, PancakesSettings  # noqa: E402
from pancakes.injector import ModuleInjector  # noqa: E402


class RecordingRenderer:
    """Renderer double that records every call."""

    def __init__(self, prefix: str = "rendered"):
        self.prefix = prefix
        self.calls = []

    def render_page(self, route_info, page, model):
        self.calls.append((route_info, page, dict(model)))
        return f"{self.prefix}:{route_info.name}:{len(self.calls)}"


@pytest.fixture
def adapter_map():
    """Adapter map used by most composition tests."""
    return {"service": "generic", "backend": "mongo", "repo": "solr"}


@pytest.fixture
def make_injector(tmp_path, adapter_map):
    """Build a ModuleInjector with registered modules."""

    def _make(modules=None, **kwargs):
        kwargs.setdefault("adapter_map", adapter_map)
        return ModuleInjector(tmp_path, modules=modules, **kwargs)

    return _make


@pytest.fixture
def app_configs():
    """App declarations for the 'www' app."""
    return {
        "www": AppConfig.model_validate(
            {
                "defaultLayout": "main",
                "data": {"theme": "light"},
                "routes": [
                    {"name": "home", "urls": ["/"]},
                    {"name": "post.new", "urls": ["/posts/new"], "layout": "editor"},
                    {"name": "post", "urls": ["/posts/{post_id}", "/p/{post_id}"], "seo": True},
                    {
                        "name": "feed",
                        "urls": ["/feed/{format}"],
                        "contentType": "application/xml",
                        "strip": False,
                    },
                ],
            }
        ),
    }


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def settings(tmp_path, adapter_map):
    return PancakesSettings(root_dir=tmp_path, adapter_map=adapter_map)
