"""
Web Route Handler.

Turns a resolved RouteInfo into a rendered page. Transport plugins (see
pancakes.server) translate their platform request into a RouteInfo through
RouteTable.get_route_info() and then call process_web_request().

Flow:
    1. Load the page descriptor (app/<app>/pages/<name>.page)
    2. Resolve the initial model (page.model through the injector)
    3. Let the transport pre-process; stop if it already replied
    4. Look the page up in the page cache
    5. Return the cached render unless the request is server-only
    6. Otherwise add app data to the model, render, cache, return

Page descriptor:
    {
        "model": async def model(tokens, route_info): ...,   # optional
        "defaults": {"page_size": 20},                       # optional, passed to model
        ...                                                  # renderer specific
    }

Callbacks and the renderer may be sync or async.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pancakes.caches import InMemoryPageCache, PageCache
from pancakes.errors import ConfigurationError
from pancakes.injector import as_mapping

from .routes import RouteInfo, RouteTable

if TYPE_CHECKING:
    from pancakes.injector import ModuleLoader

logger = logging.getLogger(__name__)


@runtime_checkable
class PageRenderer(Protocol):
    """Rendering collaborator (the client plugin)."""

    def render_page(self, route_info: RouteInfo, page: Mapping[str, Any], model: dict[str, Any]) -> Any:
        """Render a page; may return an awaitable."""
        ...


@dataclass
class RequestCallbacks:
    """
    Per-request hooks supplied by the transport plugin.

    Attributes:
        server_preprocessing: (route_info, page, model) -> bool; True means
            the hook already replied and processing stops
        add_to_model: (model, route_info) -> None; app level model additions
            run right before rendering
        page_cache: Cache replacing the handler's default page cache
    """

    server_preprocessing: Callable[[RouteInfo, Mapping[str, Any], dict[str, Any]], Any] | None = None
    add_to_model: Callable[[dict[str, Any], RouteInfo], Any] | None = None
    page_cache: PageCache | None = None


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _string_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _string_keys(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_string_keys(item) for item in value]
    return value


def set_defaults(model: dict[str, Any], defaults: Mapping[str, Any] | None) -> None:
    """Fill keys of ``model`` that are unset (missing or None) from ``defaults``."""
    if not defaults:
        return

    for key, value in defaults.items():
        if model.get(key) is None:
            model[key] = value


class WebRouteHandler:
    """
    Request pipeline for server-side rendering.

    Usage:
        handler = WebRouteHandler(injector, renderer, RouteTable(app_configs))
        route_info = handler.get_route_info("www", "/posts/42", {}, "en")
        html = await handler.process_web_request(route_info, RequestCallbacks())
    """

    def __init__(
        self,
        injector: ModuleLoader,
        renderer: PageRenderer,
        route_table: RouteTable,
        page_cache: PageCache | None = None,
    ):
        """
        Initialize handler.

        Args:
            injector: Module loader for pages and page models
            renderer: Rendering collaborator
            route_table: Compiled routes of every app
            page_cache: Default page cache (bounded LRU if not provided)
        """
        self.injector = injector
        self.renderer = renderer
        self.route_table = route_table
        self.page_cache = page_cache if page_cache is not None else InMemoryPageCache()

    # ==================== Routes ====================

    def get_routes(self, app_name: str) -> list[RouteInfo]:
        return self.route_table.get_routes(app_name)

    def get_route_info(
        self,
        app_name: str,
        url: str,
        query: dict[str, Any] | None = None,
        lang: str | None = None,
    ) -> RouteInfo:
        return self.route_table.get_route_info(app_name, url, query, lang)

    # ==================== Model ====================

    @staticmethod
    def page_path(route_info: RouteInfo) -> str:
        return f"app/{route_info.app_name}/pages/{route_info.name}.page"

    @staticmethod
    def get_cache_key(route_info: RouteInfo, model: Mapping[str, Any]) -> str:
        """
        Page cache key: the url plus the model serialized with sorted keys.

        Non-string model keys are stringified first so mixed key types can
        be sorted.
        """
        serialized = json.dumps(_string_keys(model), sort_keys=True, default=str)
        return f"{route_info.url}||{serialized}"

    async def get_initial_model(self, route_info: RouteInfo, page: Mapping[str, Any]) -> dict[str, Any]:
        """
        Resolve the initial model of a page.

        A page without a model gets an empty dict. A callable model is
        invoked through the injector with app_name, tokens, route_info,
        defaults and current_scope available as dependencies.

        Raises:
            ConfigurationError: If the page model is neither empty nor callable
        """
        page_model = page.get("model")
        if not page_model:
            return {}

        if not callable(page_model):
            raise ConfigurationError(
                f"{route_info.name} page invalid model() format: {page_model!r}"
            )

        dependencies = {
            "app_name": route_info.app_name,
            "tokens": route_info.tokens,
            "route_info": route_info,
            "defaults": page.get("defaults"),
            "current_scope": {},
        }
        model = await _resolve(
            self.injector.load_module(page_model, None, {"dependencies": dependencies})
        )
        return model if model is not None else {}

    # ==================== Pipeline ====================

    async def process_web_request(
        self,
        route_info: RouteInfo,
        callbacks: RequestCallbacks | None = None,
    ) -> Any:
        """
        Render the page for a resolved route, going through the page cache.

        Args:
            route_info: Resolved route (see get_route_info)
            callbacks: Transport hooks

        Returns:
            The rendered page, or None when server pre-processing replied
        """
        callbacks = callbacks or RequestCallbacks()
        server_only = bool((route_info.query or {}).get("server"))

        page = as_mapping(self.injector.load_module(self.page_path(route_info)))
        model = await self.get_initial_model(route_info, page)

        if callbacks.server_preprocessing is not None:
            handled = await _resolve(callbacks.server_preprocessing(route_info, page, model))
            if handled:
                logger.debug(f"[web_handler] {route_info.url} handled by server pre-processing")
                return None

        cache_key = self.get_cache_key(route_info, model)
        page_cache = callbacks.page_cache if callbacks.page_cache is not None else self.page_cache

        cached_page = await page_cache.get(key=cache_key)
        if cached_page is not None and not server_only:
            logger.debug(f"[web_handler] Page cache hit: {route_info.url}")
            return cached_page

        if callbacks.add_to_model is not None:
            await _resolve(callbacks.add_to_model(model, route_info))

        rendered_page = await _resolve(self.renderer.render_page(route_info, page, model))

        if not server_only:
            await page_cache.set(key=cache_key, value=rendered_page)

        logger.debug(
            f"[web_handler] Rendered {route_info.app_name}/{route_info.name} "
            f"for {route_info.url} (server_only={server_only})"
        )
        return rendered_page
