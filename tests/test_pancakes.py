"""
Tests for the Pancakes entry point.

Tests cover:
- init() guards
- cook() dispatch between the service factory and the injector
- End-to-end composition from project files
"""

import json
import textwrap

import pytest

from pancakes import Pancakes
from pancakes.caches import InMemoryPageCache
from pancakes.config import PancakesSettings
from pancakes.errors import NotInitializedError, ResourceNotFound
from pancakes.factories import ComposedService

# =============================================================================
# Fixtures
# =============================================================================


def write_module(root, target, source):
    path = root / f"{target}.py"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source))
    return path


@pytest.fixture
def project(tmp_path):
    """A project on disk with one resource, its adapter and a filter bag."""
    write_module(
        tmp_path,
        "services/resources/post/post.resource",
        """
        methods = ["find", "remove"]
        """,
    )
    write_module(
        tmp_path,
        "services/adapters/service/generic/post",
        """
        async def find(req):
            return {"posts": [req["where"]["author"]]}
        """,
    )
    write_module(
        tmp_path,
        "services/filters/service/post.filters",
        """
        after_filters = [{"name": "count", "resource_names": ["find"]}]

        def count(res):
            res["count"] = len(res["posts"])
            return res
        """,
    )
    return tmp_path


# =============================================================================
# Test init
# =============================================================================


class TestInit:
    """Tests for Pancakes.init()."""

    def test_cook_before_init_raises(self):
        with pytest.raises(NotInitializedError, match="Pancakes has not yet been initialized"):
            Pancakes().cook("postService")

    def test_accessors_before_init_raise(self):
        pancakes = Pancakes()
        assert pancakes.is_initialized is False
        with pytest.raises(NotInitializedError):
            pancakes.web_handler

    def test_builds_injector_from_settings(self, settings):
        pancakes = Pancakes()
        pancakes.init(settings=settings)

        assert pancakes.is_initialized is True
        assert pancakes.injector.root_dir == settings.root_dir
        assert pancakes.injector.adapter_map == settings.adapter_map
        assert pancakes.service_factory.override_adapters == frozenset({"repo"})

    def test_no_app_configs_means_no_web_handler(self, settings, renderer):
        pancakes = Pancakes()
        pancakes.init(settings=settings, renderer=renderer)

        assert pancakes.route_table is None
        assert pancakes.web_handler is None

    def test_no_renderer_means_no_web_handler(self, settings, app_configs):
        pancakes = Pancakes()
        pancakes.init(settings=settings, app_configs=app_configs)

        assert pancakes.route_table is not None
        assert pancakes.web_handler is None

    def test_web_handler_uses_settings_page_cache(self, tmp_path, renderer, app_configs):
        settings = PancakesSettings(root_dir=tmp_path, page_cache_size=5, page_cache_ttl=2.5)
        pancakes = Pancakes()
        pancakes.init(settings=settings, renderer=renderer, app_configs=app_configs)

        page_cache = pancakes.web_handler.page_cache
        assert isinstance(page_cache, InMemoryPageCache)
        assert page_cache.maxsize == 5
        assert page_cache.ttl == 2.5

    def test_app_configs_loaded_from_injector(self, settings, make_injector, renderer):
        injector = make_injector(
            {"appConfigs": {"www": {"routes": [{"name": "home", "urls": ["/"]}]}}}
        )
        pancakes = Pancakes()
        pancakes.init(injector=injector, settings=settings, renderer=renderer)

        assert pancakes.web_handler is not None
        assert pancakes.web_handler.get_route_info("www", "/").name == "home"

    def test_reinit_starts_with_fresh_service_cache(self, settings, make_injector):
        pancakes = Pancakes()
        pancakes.init(injector=make_injector(), settings=settings)
        first_factory = pancakes.service_factory
        first_factory.cache.set("postService", ComposedService("post", {}))

        pancakes.init(injector=make_injector(), settings=settings)

        assert pancakes.service_factory is not first_factory
        assert len(pancakes.service_factory.cache) == 0


# =============================================================================
# Test cook
# =============================================================================


class TestCook:
    """Tests for Pancakes.cook()."""

    def test_non_service_goes_to_injector(self, settings):
        pancakes = Pancakes()
        pancakes.init(settings=settings)
        assert pancakes.cook("json") is json

    def test_registered_value(self, settings, make_injector):
        pancakes = Pancakes()
        pancakes.init(injector=make_injector({"config": {"env": "test"}}), settings=settings)
        assert pancakes.cook("config") == {"env": "test"}

    @pytest.mark.asyncio
    async def test_composes_service_from_project_files(self, project, settings):
        pancakes = Pancakes()
        pancakes.init(settings=settings)

        posts = pancakes.cook("postService")

        assert isinstance(posts, ComposedService)
        assert list(posts) == ["find"]
        assert await posts.find({"where": {"author": "jeff"}}) == {"posts": ["jeff"], "count": 1}

    def test_service_is_cached(self, project, settings):
        pancakes = Pancakes()
        pancakes.init(settings=settings)
        assert pancakes.cook("postService") is pancakes.cook("postService")

    def test_missing_resource_raises(self, settings):
        pancakes = Pancakes()
        pancakes.init(settings=settings)

        with pytest.raises(ResourceNotFound, match="ServiceFactory could not find resource user"):
            pancakes.cook("userService")
        assert "userService" not in pancakes.service_factory.cache
