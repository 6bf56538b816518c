"""
Pancakes exception hierarchy.

Shared by the service factory, the route table and the web handler so every
layer raises and catches the same types. Messages are stable and meant to be
matched by callers (the HTTP layer keys off RouteNotFound, tests match the
text).
"""

from __future__ import annotations

from typing import Any


class PancakesError(Exception):
    """Base exception for all pancakes errors."""


class ConfigurationError(PancakesError):
    """
    Raised when a declaration is invalid.

    Covers resources without methods, badly named services, filter specs
    pointing at missing functions and page models of the wrong shape.
    Never cached: fixing the declaration and retrying is enough.
    """


class NotInitializedError(PancakesError):
    """Raised when the framework is used before init()."""

    def __init__(self, message: str = "Pancakes has not yet been initialized"):
        super().__init__(message)


class ModuleLoadError(PancakesError):
    """Raised by a module loader when a target cannot be located."""

    def __init__(self, target: Any, reason: str | None = None):
        message = f"Could not load module {target!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.target = target
        self.reason = reason


class ResourceNotFound(PancakesError):  # noqa: N818
    """The resource module for a service could not be located."""

    def __init__(self, resource_name: str | None, path: str | None = None):
        message = f"ServiceFactory could not find resource {resource_name}"
        if path:
            message = f"{message} at {path}"
        super().__init__(message)
        self.resource_name = resource_name
        self.path = path


class AdapterNotFound(PancakesError):  # noqa: N818
    """The primary adapter module for a service could not be located."""

    def __init__(self, service_info: Any, path: str | None = None):
        message = f"ServiceFactory could not find adapter for {service_info}"
        if path:
            message = f"{message} at {path}"
        super().__init__(message)
        self.service_info = service_info
        self.path = path


class RouteNotFound(PancakesError):  # noqa: N818
    """404: no compiled route of the app matches the request url."""

    status_code = 404

    def __init__(self, app_name: str, url: str):
        super().__init__(f"404: {app_name} {url} is not a valid request")
        self.app_name = app_name
        self.url = url
