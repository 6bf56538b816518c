"""
Service Factory.

Builds service objects from naming conventions.

Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                       ServiceFactory                          │
    │                                                               │
    │   Input: "blogPostBackendService" + injector                  │
    │                                                               │
    │   1. Parse name -> ServiceInfo (adapter, impl, resource)     │
    │   2. Load resource declaration                               │
    │   3. Switch to the container default adapter if generic      │
    │   4. Load adapter (+ generic override for policy categories) │
    │   5. Load filters                                            │
    │   6. Chain before filters -> adapter -> after filters        │
    │                                                               │
    │   Output: ComposedService (cached by name, forever)          │
    └──────────────────────────────────────────────────────────────┘

Lifecycle of a service name:
    Uncreated -> Resolving -> Composed (cached)

A failure while resolving raises and leaves nothing in the cache, so the
next create() call retries from scratch.

Usage:
    factory = ServiceFactory()
    posts = factory.create("postService", injector)
    result = await posts.find({"where": {"author": "jeff"}})
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from pancakes.caches import ServiceCache
from pancakes.errors import ConfigurationError, ModuleLoadError, ResourceNotFound
from pancakes.injector import as_mapping

from . import adapters, filters, naming
from .chain import ServiceMethod, get_service_method
from .schemas import Resource, ServiceInfo

if TYPE_CHECKING:
    from pancakes.injector import ModuleLoader

logger = logging.getLogger(__name__)


class ComposedService:
    """
    Service object: method name -> async method.

    Methods are reachable as attributes (``service.find(req)``) and by
    subscription (``service["find"]``). The class exposes no public
    attributes of its own, so any method name a resource declares (``get``,
    ``items``, ``name``, ...) resolves to the composed method.
    """

    __slots__ = ("_methods", "_service_name")

    def __init__(self, name: str | None, methods: Mapping[str, ServiceMethod]):
        self._service_name = name
        self._methods = dict(methods)

    def __getattr__(self, attr: str) -> ServiceMethod:
        if attr.startswith("_"):
            raise AttributeError(attr)
        try:
            return self._methods[attr]
        except KeyError:
            raise AttributeError(f"Service {self._service_name} has no method {attr}") from None

    def __getitem__(self, key: str) -> ServiceMethod:
        return self._methods[key]

    def __contains__(self, key: object) -> bool:
        return key in self._methods

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ComposedService):
            return self._methods == other._methods
        if isinstance(other, Mapping):
            return self._methods == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ComposedService({self._service_name!r}, methods={list(self._methods)})"


class ServiceFactory:
    """
    Factory composing services from resources, adapters and filters.

    The factory owns the service cache. Composition is idempotent, so no
    locking is done; concurrent misses for one name build equivalent
    services and the last write wins.
    """

    def __init__(
        self,
        cache: ServiceCache | None = None,
        override_adapters: Collection[str] = adapters.DEFAULT_OVERRIDE_ADAPTERS,
    ):
        """
        Initialize factory.

        Args:
            cache: Service cache (a fresh one if not provided)
            override_adapters: Adapter categories merged with a generic override
        """
        self.cache = cache if cache is not None else ServiceCache()
        self.override_adapters = frozenset(override_adapters)

    # ==================== Name resolution ====================

    @staticmethod
    def is_candidate(name: str) -> bool:
        return naming.is_candidate(name)

    @staticmethod
    def get_service_info(service_name: str, adapter_map: Mapping[str, str]) -> ServiceInfo:
        return naming.get_service_info(service_name, adapter_map)

    # ==================== Module loading ====================

    @staticmethod
    def resource_path(resource_name: str, services_dir: str | None = None) -> str:
        """
        Module path of a resource declaration.

        "blog.post" -> "resources/blog/post/post.resource"
        """
        segments = resource_name.split(".")
        path = f"resources/{'/'.join(segments)}/{segments[-1]}.resource"
        return f"{services_dir}/{path}" if services_dir else path

    def get_resource(self, service_info: ServiceInfo, injector: ModuleLoader) -> Resource:
        """
        Load the resource declaration for a service.

        Raises:
            ResourceNotFound: If the resource module cannot be loaded
        """
        resource_name = service_info.resource_name
        if not resource_name:
            raise ResourceNotFound(resource_name)

        path = self.resource_path(resource_name, getattr(injector, "services_dir", None))
        try:
            loaded = injector.load_module(path)
        except ModuleLoadError as e:
            raise ResourceNotFound(resource_name, path) from e

        if loaded is None:
            raise ResourceNotFound(resource_name, path)

        if isinstance(loaded, Resource):
            return loaded

        resource = Resource.model_validate(as_mapping(loaded))
        if resource.name is None:
            resource.name = resource_name
        return resource

    def check_for_default_adapter(
        self,
        service_info: ServiceInfo,
        resource: Resource,
        adapter_map: Mapping[str, str],
        container: str | None,
    ) -> ServiceInfo:
        return adapters.check_for_default_adapter(service_info, resource, adapter_map, container)

    def get_adapter(self, service_info: ServiceInfo, injector: ModuleLoader) -> dict[str, Any]:
        return adapters.get_adapter(service_info, injector, self.override_adapters)

    def get_filters(self, service_info: ServiceInfo, injector: ModuleLoader) -> dict[str, Any]:
        return filters.get_filters(service_info, injector)

    # ==================== Composition ====================

    @staticmethod
    def get_service_method(calls: list[Any]) -> ServiceMethod:
        return get_service_method(calls)

    def put_it_all_together(
        self,
        resource: Resource | Mapping[str, Any],
        adapter: Mapping[str, Any] | None,
        filter_set: Mapping[str, Any] | None = None,
    ) -> ComposedService:
        """
        Compose the service methods.

        Every resource method implemented by the adapter becomes a chain of
        applicable before filters, the adapter method and applicable after
        filters. Resource methods missing from the adapter are skipped.

        Raises:
            ConfigurationError: If the resource declares no methods
        """
        if not isinstance(resource, Resource):
            resource = Resource.model_validate(as_mapping(resource))

        if not resource.methods:
            raise ConfigurationError(f"Resource {resource.name} has no methods")

        adapter = adapter or {}
        methods: dict[str, ServiceMethod] = {}

        for method_name in resource.methods:
            impl = adapter.get(method_name)
            if impl is None:
                continue

            calls = [
                *filters.filters_for(filter_set, filters.BEFORE_FILTERS, resource.name, method_name),
                impl,
                *filters.filters_for(filter_set, filters.AFTER_FILTERS, resource.name, method_name),
            ]
            methods[method_name] = get_service_method(calls)

        return ComposedService(resource.name, methods)

    def create(self, service_name: str, injector: ModuleLoader) -> ComposedService:
        """
        Get a service by name, composing and caching it on first use.

        Args:
            service_name: Name ending in "Service"
            injector: Module loader exposing adapter_map and container

        Returns:
            The cached ComposedService
        """
        cached = self.cache.get(service_name)
        if cached is not None:
            logger.debug(f"[service_factory] Cache hit: {service_name}")
            return cached

        adapter_map = getattr(injector, "adapter_map", None) or {}
        container = getattr(injector, "container", None)

        service_info = self.get_service_info(service_name, adapter_map)
        resource = self.get_resource(service_info, injector)
        service_info = self.check_for_default_adapter(service_info, resource, adapter_map, container)
        adapter = self.get_adapter(service_info, injector)
        filter_set = self.get_filters(service_info, injector)
        service = self.put_it_all_together(resource, adapter, filter_set)

        self.cache.set(service_name, service)
        logger.info(
            f"[service_factory] Composed {service_name} ({service_info}) "
            f"with methods {list(service)}"
        )
        return service
