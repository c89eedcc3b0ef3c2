"""Import-origin resolution: module lookup, barrel walking and the imports map."""

from .barrels import BarrelResolver, classify_export
from .external import ExternalPackageResolver, is_bare_specifier
from .imports import ImportsScanner, build_imports_map
from .modules import ModuleResolver

__all__ = [
    "BarrelResolver",
    "ExternalPackageResolver",
    "ImportsScanner",
    "ModuleResolver",
    "build_imports_map",
    "classify_export",
    "is_bare_specifier",
]
