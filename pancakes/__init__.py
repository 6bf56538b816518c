"""
Pancakes - runtime core of an isomorphic web framework.

Pancakes turns naming conventions and declarations into live objects:

- **Service Composition**: ``postBackendService`` becomes a service whose
  methods chain filters around a resource's adapter implementation
- **Route Resolution**: app URL templates compile into cached matchers
  that bind ``{token}`` placeholders from request urls
- **Request Pipeline**: page model resolution, server pre-processing,
  page caching and rendering for server-side requests

Quick Start:
    >>> from pancakes import Pancakes
    >>>
    >>> pancakes = Pancakes()
    >>> pancakes.init(renderer=renderer)
    >>> posts = pancakes.cook("postService")
    >>> result = await posts.find({"where": {"slug": "hello"}})
"""

__version__ = "0.1.0"
__license__ = "MIT"

from pancakes.core import Pancakes
from pancakes.errors import (
    AdapterNotFound,
    ConfigurationError,
    ModuleLoadError,
    NotInitializedError,
    PancakesError,
    ResourceNotFound,
    RouteNotFound,
)
from pancakes.factories import ComposedService, ServiceFactory
from pancakes.injector import ModuleInjector
from pancakes.web import RequestCallbacks, RouteInfo, RouteTable, WebRouteHandler

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Entry point
    "Pancakes",
    # Composition
    "ComposedService",
    "ServiceFactory",
    "ModuleInjector",
    # Web
    "RequestCallbacks",
    "RouteInfo",
    "RouteTable",
    "WebRouteHandler",
    # Errors
    "AdapterNotFound",
    "ConfigurationError",
    "ModuleLoadError",
    "NotInitializedError",
    "PancakesError",
    "ResourceNotFound",
    "RouteNotFound",
]
