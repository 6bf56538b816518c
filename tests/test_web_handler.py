"""
Tests for the web route handler.

Tests cover:
- set_defaults
- get_initial_model for every page model shape
- process_web_request pipeline (pre-processing, page cache, server-only)
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pancakes.caches import InMemoryPageCache
from pancakes.errors import ConfigurationError, RouteNotFound
from pancakes.web import RequestCallbacks, RouteTable, WebRouteHandler, set_defaults

# =============================================================================
# Fixtures
# =============================================================================


async def post_model(tokens, app_name, current_scope):
    return {"post_id": tokens["post_id"], "app": app_name, "scope": current_scope}


@pytest.fixture
def pages():
    return {
        "app/www/pages/home.page": {},
        "app/www/pages/post.page": {"model": post_model, "defaults": {"page_size": 20}},
        "app/www/pages/post.new.page": {"model": "not a function"},
    }


@pytest.fixture
def handler(make_injector, pages, renderer, app_configs):
    return WebRouteHandler(make_injector(pages), renderer, RouteTable(app_configs))


# =============================================================================
# Test set_defaults
# =============================================================================


class TestSetDefaults:
    """Tests for set_defaults()."""

    def test_fills_only_unset_keys(self):
        model = {"a": 1, "b": None}
        set_defaults(model, {"a": 100, "b": 2, "c": 3})
        assert model == {"a": 1, "b": 2, "c": 3}

    def test_no_defaults_is_noop(self):
        model = {"a": 1}
        set_defaults(model, None)
        set_defaults(model, {})
        assert model == {"a": 1}

    def test_falsy_values_are_kept(self):
        model = {"count": 0, "name": ""}
        set_defaults(model, {"count": 10, "name": "x"})
        assert model == {"count": 0, "name": ""}


# =============================================================================
# Test get_initial_model
# =============================================================================


class TestGetInitialModel:
    """Tests for get_initial_model()."""

    @pytest.mark.asyncio
    async def test_no_model_gives_empty_dict(self, handler):
        route_info = handler.get_route_info("www", "/")
        assert await handler.get_initial_model(route_info, {}) == {}

    @pytest.mark.asyncio
    async def test_async_model_gets_injected_context(self, handler, pages):
        route_info = handler.get_route_info("www", "/posts/42")
        model = await handler.get_initial_model(route_info, pages["app/www/pages/post.page"])
        assert model == {"post_id": "42", "app": "www", "scope": {}}

    @pytest.mark.asyncio
    async def test_sync_model_receives_route_info_and_defaults(self, handler):
        route_info = handler.get_route_info("www", "/p/9")

        def model(route_info, defaults):
            return {"route": route_info.name, "defaults": defaults}

        actual = await handler.get_initial_model(route_info, {"model": model, "defaults": {"x": 1}})
        assert actual == {"route": "post", "defaults": {"x": 1}}

    @pytest.mark.asyncio
    async def test_model_returning_none_gives_empty_dict(self, handler):
        route_info = handler.get_route_info("www", "/")
        assert await handler.get_initial_model(route_info, {"model": lambda: None}) == {}

    @pytest.mark.asyncio
    async def test_invalid_model_format_raises(self, handler):
        route_info = handler.get_route_info("www", "/posts/new")
        with pytest.raises(ConfigurationError, match=r"post.new page invalid model\(\) format"):
            await handler.get_initial_model(route_info, {"model": "not a function"})


# =============================================================================
# Test process_web_request
# =============================================================================


class TestProcessWebRequest:
    """Tests for process_web_request()."""

    @pytest.mark.asyncio
    async def test_renders_resolved_model(self, handler, renderer):
        route_info = handler.get_route_info("www", "/posts/42")

        result = await handler.process_web_request(route_info)

        assert result == "rendered:post:1"
        _, page, model = renderer.calls[0]
        assert model == {"post_id": "42", "app": "www", "scope": {}}
        assert page["defaults"] == {"page_size": 20}

    @pytest.mark.asyncio
    async def test_page_defaults_only_reach_the_model_function(self, make_injector, renderer, app_configs):
        def model(defaults):
            return {"limit": defaults["page_size"]}

        pages = {
            "app/www/pages/home.page": {"model": lambda: {}, "defaults": {"page_size": 20}},
            "app/www/pages/post.page": {"model": model, "defaults": {"page_size": 20}},
        }
        handler = WebRouteHandler(make_injector(pages), renderer, RouteTable(app_configs))

        await handler.process_web_request(handler.get_route_info("www", "/"))
        await handler.process_web_request(handler.get_route_info("www", "/posts/1"))

        assert renderer.calls[0][2] == {}
        assert renderer.calls[1][2] == {"limit": 20}

    @pytest.mark.asyncio
    async def test_second_request_served_from_page_cache(self, handler, renderer):
        route_info = handler.get_route_info("www", "/posts/42")

        first = await handler.process_web_request(route_info)
        second = await handler.process_web_request(route_info)

        assert second == first
        assert len(renderer.calls) == 1

    @pytest.mark.asyncio
    async def test_server_only_bypasses_page_cache(self, handler, renderer):
        cached = await handler.process_web_request(handler.get_route_info("www", "/posts/42"))

        route_info = handler.get_route_info("www", "/posts/42", {"server": "true"})
        fresh = await handler.process_web_request(route_info)

        assert fresh == "rendered:post:2"
        assert len(renderer.calls) == 2

        # server-only renders are not stored
        route_info = handler.get_route_info("www", "/posts/42", {})
        assert await handler.process_web_request(route_info) == cached

    @pytest.mark.asyncio
    async def test_preprocessing_short_circuits(self, handler, renderer):
        route_info = handler.get_route_info("www", "/posts/42")
        preprocess = MagicMock(return_value=True)

        result = await handler.process_web_request(
            route_info, RequestCallbacks(server_preprocessing=preprocess)
        )

        assert result is None
        assert renderer.calls == []
        called_route, called_page, called_model = preprocess.call_args.args
        assert called_route is route_info
        assert called_model["post_id"] == "42"

    @pytest.mark.asyncio
    async def test_async_preprocessing_returning_false_continues(self, handler, renderer):
        route_info = handler.get_route_info("www", "/")
        preprocess = AsyncMock(return_value=False)

        result = await handler.process_web_request(
            route_info, RequestCallbacks(server_preprocessing=preprocess)
        )

        assert result == "rendered:home:1"
        preprocess.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_add_to_model_runs_before_render(self, handler, renderer):
        route_info = handler.get_route_info("www", "/")

        def add_to_model(model, route_info):
            model["user"] = "jeff"

        await handler.process_web_request(route_info, RequestCallbacks(add_to_model=add_to_model))

        assert renderer.calls[0][2] == {"user": "jeff"}

    @pytest.mark.asyncio
    async def test_uses_callback_page_cache(self, handler, renderer):
        route_info = handler.get_route_info("www", "/")
        page_cache = MagicMock()
        page_cache.get = AsyncMock(return_value=None)
        page_cache.set = AsyncMock()

        result = await handler.process_web_request(route_info, RequestCallbacks(page_cache=page_cache))

        page_cache.get.assert_awaited_once_with(key="/||{}")
        page_cache.set.assert_awaited_once_with(key="/||{}", value=result)
        assert len(handler.page_cache) == 0

    @pytest.mark.asyncio
    async def test_returns_cached_render_from_custom_cache(self, handler, renderer):
        route_info = handler.get_route_info("www", "/")
        page_cache = InMemoryPageCache()
        await page_cache.set(key=handler.get_cache_key(route_info, {}), value="from cache")

        result = await handler.process_web_request(route_info, RequestCallbacks(page_cache=page_cache))

        assert result == "from cache"
        assert renderer.calls == []

    @pytest.mark.asyncio
    async def test_async_renderer(self, make_injector, pages, app_configs):
        renderer = MagicMock()
        renderer.render_page = AsyncMock(return_value="<html/>")
        handler = WebRouteHandler(make_injector(pages), renderer, RouteTable(app_configs))

        result = await handler.process_web_request(handler.get_route_info("www", "/"))

        assert result == "<html/>"

    @pytest.mark.asyncio
    async def test_render_failure_propagates_and_is_not_cached(self, make_injector, pages, app_configs):
        renderer = MagicMock()
        renderer.render_page.side_effect = RuntimeError("template blew up")
        handler = WebRouteHandler(make_injector(pages), renderer, RouteTable(app_configs))

        with pytest.raises(RuntimeError, match="template blew up"):
            await handler.process_web_request(handler.get_route_info("www", "/"))
        assert len(handler.page_cache) == 0

    def test_unmatched_url_raises_not_found(self, handler):
        with pytest.raises(RouteNotFound):
            handler.get_route_info("www", "/missing/page/here")

    def test_cache_key_serializes_model(self, handler):
        route_info = handler.get_route_info("www", "/p/1")
        assert handler.get_cache_key(route_info, {"b": 2, "a": 1}) == '/p/1||{"a": 1, "b": 2}'

    def test_cache_key_with_mixed_key_types(self, handler):
        route_info = handler.get_route_info("www", "/p/1")
        key = handler.get_cache_key(route_info, {1: "a", "b": {2: [{3: "c"}]}})
        assert key == '/p/1||{"1": "a", "b": {"2": [{"3": "c"}]}}'
