"""
Module Loaders.

The service factory and the web handler never import anything themselves;
they ask a module loader for a target by name or path. This module holds the
loader contract and a reference implementation.

Design Principle:
    The core only depends on the ModuleLoader protocol. Projects are free to
    plug a different dependency injection mechanism as long as it raises
    ModuleLoadError for targets it cannot locate.

Resolution order of ModuleInjector.load_module(target):
    1. callable target: invoked with keyword arguments resolved by
       parameter name (explicit dependencies first, then load_module(name))
    2. explicitly registered value
    3. Python file at <root_dir>/<target>.py, exposed as a dict of its
       public attributes
    4. importable module name (no path separator)

Usage:
    injector = ModuleInjector(
        root_dir="myproject",
        adapter_map={"service": "generic", "backend": "mongo"},
    )
    injector.register("appConfigs", {"www": AppConfig(...)})

    resource = injector.load_module("services/resources/post/post.resource")
    model = injector.load_module(page_model, None, {"dependencies": {"tokens": {...}}})
"""

from __future__ import annotations

import importlib
import importlib.util
import inspect
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

from pancakes.errors import ModuleLoadError

logger = logging.getLogger(__name__)


@runtime_checkable
class ModuleLoader(Protocol):
    """
    Contract consumed by the service factory and the web handler.

    Attributes:
        services_dir: Prefix for resource/adapter/filter module paths
        adapter_map: Adapter category -> implementation id
        container: Deployment container used for default adapters
    """

    services_dir: str
    adapter_map: dict[str, str]
    container: str

    def load_module(
        self,
        target: Any,
        args: list[Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> Any:
        """
        Load a module, a registered value or the result of a factory.

        Raises:
            ModuleLoadError: If the target cannot be located
        """
        ...


def module_exports(module: ModuleType) -> dict[str, Any]:
    """
    Expose a loaded Python module as a plain dict.

    Honors ``__all__`` when present, otherwise returns every public
    attribute that is not itself a module.
    """
    names = getattr(module, "__all__", None)
    if names is None:
        names = [
            name
            for name, value in vars(module).items()
            if not name.startswith("_") and not isinstance(value, ModuleType)
        ]
    return {name: getattr(module, name) for name in names}


def as_mapping(value: Any) -> dict[str, Any]:
    """
    Normalize a loaded value into a dict.

    Loaders may hand back dicts, modules, or plain objects (an adapter class
    instance, for example); the composition layer treats them all as a
    name -> member mapping.
    """
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, ModuleType):
        return module_exports(value)
    return {
        name: getattr(value, name)
        for name in dir(value)
        if not name.startswith("_")
    }


class ModuleInjector:
    """
    Reference module loader with name-based dependency injection.

    Loaded files are memoized per injector; registering a value under the
    same name replaces it.
    """

    def __init__(
        self,
        root_dir: str | Path | None = None,
        *,
        services_dir: str = "services",
        adapter_map: dict[str, str] | None = None,
        container: str = "api",
        modules: dict[str, Any] | None = None,
    ):
        """
        Initialize injector.

        Args:
            root_dir: Directory file targets are resolved against
            services_dir: Services folder, relative to root_dir
            adapter_map: Adapter category -> implementation id
            container: Deployment container name
            modules: Values to register up front
        """
        self.root_dir = Path(root_dir) if root_dir is not None else Path.cwd()
        self.services_dir = services_dir
        self.adapter_map = dict(adapter_map or {})
        self.container = container
        self._modules: dict[str, Any] = dict(modules or {})
        self._file_cache: dict[str, Any] = {}

    def register(self, name: str, value: Any) -> None:
        """Register a value so load_module(name) returns it."""
        self._modules[name] = value

    def load_module(
        self,
        target: Any,
        args: list[Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> Any:
        if callable(target) and not isinstance(target, str):
            return self._invoke(target, args, options or {})

        if not isinstance(target, str) or not target:
            raise ModuleLoadError(target, "unsupported target")

        if target in self._modules:
            return self._modules[target]

        if target in self._file_cache:
            return self._file_cache[target]

        file_path = self.root_dir / f"{target}.py"
        if file_path.is_file():
            exports = self._load_file(target, file_path)
            self._file_cache[target] = exports
            return exports

        if "/" not in target:
            try:
                return importlib.import_module(target)
            except ImportError as e:
                raise ModuleLoadError(target, str(e)) from e

        raise ModuleLoadError(target, f"no file at {file_path}")

    def _invoke(self, factory: Any, args: list[Any] | None, options: dict[str, Any]) -> Any:
        """Call a factory, injecting its parameters by name."""
        dependencies = options.get("dependencies") or {}
        kwargs: dict[str, Any] = {}

        for name, param in inspect.signature(factory).parameters.items():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if name in dependencies:
                kwargs[name] = dependencies[name]
            elif param.default is param.empty:
                kwargs[name] = self.load_module(name)

        logger.debug(
            f"[injector] Invoking {getattr(factory, '__name__', factory)!r} "
            f"with {list(kwargs)}"
        )
        return factory(*(args or []), **kwargs)

    def _load_file(self, target: str, file_path: Path) -> dict[str, Any]:
        """Execute a Python file and return its exports."""
        module_name = "pancakes_module_" + re.sub(r"[^0-9a-zA-Z_]", "_", target)
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise ModuleLoadError(target, f"cannot import {file_path}")

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        logger.debug(f"[injector] Loaded {target} from {file_path}")
        return module_exports(module)
