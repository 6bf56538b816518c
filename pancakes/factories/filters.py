"""
Service filters.

A filter module is a bag holding before/after filter declarations next to
the filter functions they name:

    before_filters = [{"name": "check_access", "all": True}]
    after_filters = [{"name": "strip_private", "resource_names": ["user"]}]

    async def check_access(req): ...
    async def strip_private(res): ...

Filters are looked up at <services_dir>/filters/<adapter>/<resource>.filters.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from pancakes.errors import ConfigurationError, ModuleLoadError
from pancakes.injector import as_mapping

from .schemas import FilterSpec, ServiceInfo

if TYPE_CHECKING:
    from pancakes.injector import ModuleLoader

logger = logging.getLogger(__name__)

BEFORE_FILTERS = "before_filters"
AFTER_FILTERS = "after_filters"

_ALIASES = {
    BEFORE_FILTERS: "beforeFilters",
    AFTER_FILTERS: "afterFilters",
}


def filters_path(service_info: ServiceInfo, services_dir: str | None = None) -> str:
    path = f"filters/{service_info.adapter_name}/{service_info.resource_name}.filters"
    return f"{services_dir}/{path}" if services_dir else path


def get_filters(service_info: ServiceInfo, injector: ModuleLoader) -> dict[str, Any]:
    """
    Load the filter bag for a service.

    Returns:
        The loaded bag, or an empty dict when the service has no filters
    """
    path = filters_path(service_info, getattr(injector, "services_dir", None))
    try:
        filter_set = injector.load_module(path)
    except ModuleLoadError:
        return {}

    if not filter_set:
        return {}

    logger.debug(f"[service_factory] Loaded filters from {path}")
    return as_mapping(filter_set)


def parse_filter_specs(filter_set: Mapping[str, Any] | None, key: str) -> list[FilterSpec]:
    """Validate the before/after declarations stored under ``key``."""
    if not filter_set:
        return []

    declared = filter_set.get(key)
    if declared is None:
        declared = filter_set.get(_ALIASES.get(key, key))
    if not declared:
        return []

    return [
        spec if isinstance(spec, FilterSpec) else FilterSpec.model_validate(spec)
        for spec in declared
    ]


def filters_for(
    filter_set: Mapping[str, Any] | None,
    key: str,
    resource_name: str | None,
    method_name: str,
) -> list[Callable[[Any], Any]]:
    """
    Get the filter functions that apply to one service method.

    Returns:
        Filter callables in declared order

    Raises:
        ConfigurationError: If a declaration names a missing function
    """
    calls = []
    for spec in parse_filter_specs(filter_set, key):
        if not spec.applies_to(resource_name, method_name):
            continue

        fn = filter_set.get(spec.name)
        if not callable(fn):
            raise ConfigurationError(
                f"Filter {spec.name} declared in {key} for {resource_name} is not a function"
            )
        calls.append(fn)
    return calls
