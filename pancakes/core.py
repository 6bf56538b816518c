"""
Pancakes entry point.

Wires the injector, the service factory and the web handler together and
guards every use behind init().

Usage:
    pancakes = Pancakes()
    pancakes.init(renderer=MyRenderer())

    posts = pancakes.cook("postService")       # composed service
    json_module = pancakes.cook("json")        # anything else: injector

    handler = pancakes.web_handler
    route_info = handler.get_route_info("www", "/posts/42")
    html = await handler.process_web_request(route_info)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pancakes.caches import InMemoryPageCache, PageCache, ServiceCache
from pancakes.config import PancakesSettings, get_settings
from pancakes.errors import ModuleLoadError, NotInitializedError
from pancakes.factories import ServiceFactory, is_candidate
from pancakes.injector import ModuleInjector, ModuleLoader
from pancakes.web import PageRenderer, RouteTable, WebRouteHandler

logger = logging.getLogger(__name__)

APP_CONFIGS_MODULE = "appConfigs"


class Pancakes:
    """Framework instance; every cache it owns is created by init()."""

    def __init__(self) -> None:
        self._settings: PancakesSettings | None = None
        self._injector: ModuleLoader | None = None
        self._service_factory: ServiceFactory | None = None
        self._route_table: RouteTable | None = None
        self._web_handler: WebRouteHandler | None = None

    def init(
        self,
        injector: ModuleLoader | None = None,
        settings: PancakesSettings | None = None,
        renderer: PageRenderer | None = None,
        app_configs: Mapping[str, Any] | None = None,
        page_cache: PageCache | None = None,
    ) -> None:
        """
        Initialize (or re-initialize) the framework.

        Args:
            injector: Module loader (a ModuleInjector built from settings if not provided)
            settings: Framework settings (environment settings if not provided)
            renderer: Rendering collaborator; required for the web handler
            app_configs: App name -> AppConfig (loaded as "appConfigs" if not provided)
            page_cache: Default page cache (bounded LRU from settings if not provided)
        """
        settings = settings or get_settings()

        if injector is None:
            injector = ModuleInjector(
                settings.root_dir,
                services_dir=settings.services_dir,
                adapter_map=settings.adapter_map,
                container=settings.container,
            )

        if app_configs is None:
            try:
                app_configs = injector.load_module(APP_CONFIGS_MODULE)
            except ModuleLoadError:
                logger.debug("[pancakes] No appConfigs module, web handler disabled")

        self._settings = settings
        self._injector = injector
        self._service_factory = ServiceFactory(ServiceCache(), settings.override_adapters)
        self._route_table = RouteTable(app_configs) if app_configs is not None else None
        self._web_handler = None

        if self._route_table is not None and renderer is not None:
            self._web_handler = WebRouteHandler(
                injector,
                renderer,
                self._route_table,
                page_cache or InMemoryPageCache(settings.page_cache_size, settings.page_cache_ttl),
            )

        logger.info(
            f"[pancakes] Initialized (container={settings.container}, "
            f"apps={sorted(app_configs) if app_configs else []}, "
            f"web_handler={self._web_handler is not None})"
        )

    @property
    def is_initialized(self) -> bool:
        return self._injector is not None

    def _require_init(self) -> None:
        if not self.is_initialized:
            raise NotInitializedError()

    @property
    def settings(self) -> PancakesSettings:
        self._require_init()
        return self._settings

    @property
    def injector(self) -> ModuleLoader:
        self._require_init()
        return self._injector

    @property
    def service_factory(self) -> ServiceFactory:
        self._require_init()
        return self._service_factory

    @property
    def route_table(self) -> RouteTable | None:
        self._require_init()
        return self._route_table

    @property
    def web_handler(self) -> WebRouteHandler | None:
        self._require_init()
        return self._web_handler

    def cook(self, name: str) -> Any:
        """
        Get a dependency by name.

        Service names ("postService") are composed by the service factory;
        anything else goes straight to the injector.

        Raises:
            NotInitializedError: If init() has not been called
        """
        self._require_init()

        if is_candidate(name):
            return self._service_factory.create(name, self._injector)
        return self._injector.load_module(name)
