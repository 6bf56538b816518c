"""
Adapter resolution.

An adapter supplies the implementations behind a resource's methods. The
primary adapter lives at

    <services_dir>/adapters/<adapter_name>/<adapter_impl>/<resource_name>

Adapter categories listed in the override policy may also ship a generic
module, independent of the implementation, at

    <services_dir>/adapters/<adapter_name>/<resource_name>

which is merged over the primary one (generic values win on collision).
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Collection, Mapping
from typing import TYPE_CHECKING, Any

from pancakes.errors import AdapterNotFound, ModuleLoadError
from pancakes.injector import as_mapping

from .schemas import GENERIC_ADAPTER, Resource, ServiceInfo

if TYPE_CHECKING:
    from pancakes.injector import ModuleLoader

logger = logging.getLogger(__name__)

DEFAULT_OVERRIDE_ADAPTERS = frozenset({"repo"})


def merge_adapters(primary: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge a generic override over a primary adapter.

    Override values replace primary values on key collision; primary keys
    that are not overridden survive. Not commutative.
    """
    merged = dict(primary)
    merged.update(override)
    return merged


def check_for_default_adapter(
    service_info: ServiceInfo,
    resource: Resource,
    adapter_map: Mapping[str, str],
    container: str | None,
) -> ServiceInfo:
    """
    Apply the resource's default adapter for the current container.

    Only a service that resolved to the generic adapter is switched; an
    adapter named explicitly in the service name always wins.

    Returns:
        The switched ServiceInfo, or ``service_info`` unchanged
    """
    category = resource.adapters.get(container) if container else None
    if not category or service_info.adapter_name != GENERIC_ADAPTER:
        return service_info

    logger.debug(
        f"[service_factory] Default adapter for {resource.name} in {container}: {category}"
    )
    return dataclasses.replace(
        service_info,
        adapter_name=category,
        adapter_impl=adapter_map.get(category),
    )


def adapter_path(service_info: ServiceInfo, services_dir: str | None = None) -> str:
    path = (
        f"adapters/{service_info.adapter_name}/{service_info.adapter_impl}/"
        f"{service_info.resource_name}"
    )
    return f"{services_dir}/{path}" if services_dir else path


def override_adapter_path(service_info: ServiceInfo, services_dir: str | None = None) -> str:
    path = f"adapters/{service_info.adapter_name}/{service_info.resource_name}"
    return f"{services_dir}/{path}" if services_dir else path


def get_adapter(
    service_info: ServiceInfo,
    injector: ModuleLoader,
    override_adapters: Collection[str] = DEFAULT_OVERRIDE_ADAPTERS,
) -> dict[str, Any]:
    """
    Load the adapter for a service, merging the generic override if any.

    Args:
        service_info: Resolved service info
        injector: Module loader
        override_adapters: Categories that support a generic override layer

    Returns:
        Mapping of method name -> implementation

    Raises:
        AdapterNotFound: If the primary adapter cannot be loaded
    """
    if not (service_info.adapter_name and service_info.adapter_impl and service_info.resource_name):
        raise AdapterNotFound(service_info)

    services_dir = getattr(injector, "services_dir", None)
    path = adapter_path(service_info, services_dir)
    try:
        primary = injector.load_module(path)
    except ModuleLoadError as e:
        raise AdapterNotFound(service_info, path) from e

    if primary is None:
        raise AdapterNotFound(service_info, path)

    adapter = as_mapping(primary)
    if service_info.adapter_name not in override_adapters:
        return adapter

    override_path = override_adapter_path(service_info, services_dir)
    try:
        override = injector.load_module(override_path)
    except ModuleLoadError:
        logger.debug(f"[service_factory] No generic override at {override_path}")
        return adapter

    if override is None:
        return adapter

    logger.debug(f"[service_factory] Merging generic override {override_path}")
    return merge_adapters(adapter, as_mapping(override))
