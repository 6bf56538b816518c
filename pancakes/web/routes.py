"""
Route compilation and matching.

Each app declares its routes as URL templates:

    routes = [
        {"name": "post", "urls": ["/posts/{post_id}", "/p/{post_id}"]},
        {"name": "home", "urls": ["/"], "layout": "landing"},
    ]

Templates are compiled lazily, once per app, into RouteInfo descriptors
holding an anchored regex plus the rendering metadata merged with the app
defaults. Resolving a request url scans the compiled routes in declaration
order and caches the result per (app, url).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pancakes.caches import RouteCache, RouteInfoCache
from pancakes.config.schemas import AppConfig
from pancakes.errors import RouteNotFound

logger = logging.getLogger(__name__)

DEFAULT_WRAPPER = "server.page"

TOKEN_VALUE_PATTERN = r"[a-zA-Z0-9\-_~]+"
_PLACEHOLDER_RE = re.compile(r"\{[a-zA-Z0-9\-_~]*\}")


class RouteInfo(BaseModel):
    """
    Resolved descriptor for one URL template of an app.

    The compiled form (per app) leaves the request fields empty; the
    resolved form (per app and url) fills app_name, url, lang, tokens and
    query. ``query`` is refreshed on every lookup of a cached entry.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    name: str
    url_pattern: str
    url_regex: re.Pattern[str]
    layout: str | None = None
    wrapper: str = DEFAULT_WRAPPER
    strip: bool = True
    content_type: str | None = None
    data: Any = None
    server_only: bool = False

    # Request fields
    app_name: str | None = None
    url: str | None = None
    lang: str | None = None
    tokens: dict[str, str] = Field(default_factory=dict)
    query: dict[str, Any] = Field(default_factory=dict)


def convert_url_pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """
    Compile a URL template into an anchored regex.

    Example:
        convert_url_pattern_to_regex("/posts/{id}")
        # ^\\/posts\\/[a-zA-Z0-9\\-_~]+\\Z
    """
    pattern = _PLACEHOLDER_RE.sub(lambda _: TOKEN_VALUE_PATTERN, pattern)
    pattern = pattern.replace("/", "\\/")
    return re.compile(f"^{pattern}\\Z")


def get_token_values_from_url(pattern: str, url: str) -> dict[str, str]:
    """
    Extract placeholder values by walking the template and the url together.

    The literal text between placeholders advances both cursors by the same
    length. A token's value runs up to the next "/" in the url or the next
    literal run of the template, whichever comes first. Scanning stops at
    the last placeholder or at an unterminated "{".

    Example:
        get_token_values_from_url("/posts/{id}-{slug}", "/posts/42-hello")
        # {"id": "42", "slug": "hello"}
    """
    token_values: dict[str, str] = {}
    pattern_pos = 0
    url_pos = 0

    while True:
        open_idx = pattern.find("{", pattern_pos)
        if open_idx < 0:
            break

        url_pos += open_idx - pattern_pos
        close_idx = pattern.find("}", open_idx + 1)
        if close_idx < 0:
            break

        token_name = pattern[open_idx + 1 : close_idx]
        pattern_pos = close_idx + 1

        next_open = pattern.find("{", pattern_pos)
        literal = pattern[pattern_pos:] if next_open < 0 else pattern[pattern_pos:next_open]

        end = url.find("/", url_pos)
        if end < 0:
            end = len(url)
        if literal:
            literal_idx = url.find(literal, url_pos)
            if literal_idx >= 0:
                end = min(end, literal_idx)

        token_values[token_name] = url[url_pos:end]
        url_pos = end

    return token_values


class RouteTable:
    """
    Compiled routes and resolved route info for every app.

    Owns the route cache (app -> compiled routes) and the route info cache
    (app||url -> resolved route). Neither is ever invalidated; only the
    query of a cached route info changes between requests.

    Usage:
        table = RouteTable({"www": AppConfig(routes=[...])})
        info = table.get_route_info("www", "/posts/42", {"page": "2"}, "en")
        info.tokens  # {"post_id": "42"}
    """

    def __init__(
        self,
        app_configs: Mapping[str, AppConfig | Mapping[str, Any]],
        route_cache: RouteCache | None = None,
        route_info_cache: RouteInfoCache | None = None,
    ):
        self._app_configs = app_configs
        self.route_cache = route_cache if route_cache is not None else RouteCache()
        self.route_info_cache = route_info_cache if route_info_cache is not None else RouteInfoCache()

    def get_app_config(self, app_name: str) -> AppConfig | None:
        app_config = self._app_configs.get(app_name)
        if app_config is None or isinstance(app_config, AppConfig):
            return app_config
        return AppConfig.model_validate(app_config)

    def get_routes(self, app_name: str) -> list[RouteInfo]:
        """
        Get the compiled routes of an app, compiling on first use.

        Returns:
            One RouteInfo per (route, url template), in declaration order
        """
        cached = self.route_cache.get(app_name)
        if cached is not None:
            return cached

        app_config = self.get_app_config(app_name)
        if app_config is None:
            logger.warning(f"[routes] No app config for {app_name}")
            return []

        routes: list[RouteInfo] = []
        for route in app_config.routes:
            if route.strip is not None:
                strip = route.strip
            elif app_config.default_strip is not None:
                strip = app_config.default_strip
            else:
                strip = True

            for url_pattern in route.urls:
                routes.append(
                    RouteInfo(
                        **(route.model_extra or {}),
                        name=route.name,
                        url_pattern=url_pattern,
                        url_regex=convert_url_pattern_to_regex(url_pattern),
                        layout=route.layout or app_config.default_layout or app_name,
                        wrapper=route.wrapper or app_config.default_wrapper or DEFAULT_WRAPPER,
                        strip=strip,
                        content_type=route.content_type,
                        data=route.data if route.data is not None else app_config.data,
                        server_only=bool(app_config.server_only),
                    )
                )

        self.route_cache.set(app_name, routes)
        logger.info(f"[routes] Compiled {len(routes)} routes for {app_name}")
        return routes

    def get_route_info(
        self,
        app_name: str,
        url: str,
        query: dict[str, Any] | None = None,
        lang: str | None = None,
    ) -> RouteInfo:
        """
        Resolve a request url to its route info.

        Args:
            app_name: App handling the request
            url: Request path
            query: Query parameters (never part of the cache key)
            lang: Request language

        Raises:
            RouteNotFound: If no route of the app matches
        """
        query = query if query is not None else {}
        cache_key = RouteInfoCache.make_key(app_name, url)

        cached = self.route_info_cache.get(cache_key)
        if cached is not None:
            cached.query = query
            return cached

        lowered = url.lower()
        for route in self.get_routes(app_name):
            if route.url_regex.fullmatch(lowered):
                route_info = route.model_copy(
                    update={
                        "app_name": app_name,
                        "lang": lang,
                        "url": url,
                        "query": query,
                        "tokens": get_token_values_from_url(route.url_pattern, url),
                    }
                )
                self.route_info_cache.set(cache_key, route_info)
                logger.debug(f"[routes] {app_name} {url} -> {route.name} ({route.url_pattern})")
                return route_info

        raise RouteNotFound(app_name, url)
