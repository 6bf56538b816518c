"""
Pancakes Service Composition.

Turns a service name into a live service object:

    postBackendService
        -> ServiceInfo(adapter_name="backend", adapter_impl="mongo", resource_name="post")
        -> resource + adapter + filters
        -> ComposedService {"find": async fn, "create": async fn, ...}
"""

from .adapters import check_for_default_adapter, get_adapter, merge_adapters
from .chain import ServiceMethod, get_service_method
from .filters import filters_for, get_filters, parse_filter_specs
from .naming import get_service_info, is_candidate, tokenize_service_name
from .schemas import FilterSpec, Resource, ServiceInfo
from .service_factory import ComposedService, ServiceFactory

__all__ = [
    # Schemas
    "FilterSpec",
    "Resource",
    "ServiceInfo",
    # Naming
    "get_service_info",
    "is_candidate",
    "tokenize_service_name",
    # Adapters and filters
    "check_for_default_adapter",
    "get_adapter",
    "merge_adapters",
    "filters_for",
    "get_filters",
    "parse_filter_specs",
    # Composition
    "ServiceMethod",
    "get_service_method",
    "ComposedService",
    "ServiceFactory",
]
