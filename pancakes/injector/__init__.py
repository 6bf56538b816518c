"""
Pancakes Injector Layer.

Module loading contract plus the reference file/registry injector.
"""

from .loaders import ModuleInjector, ModuleLoader, as_mapping, module_exports

__all__ = [
    "ModuleInjector",
    "ModuleLoader",
    "as_mapping",
    "module_exports",
]
