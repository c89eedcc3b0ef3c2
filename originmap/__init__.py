"""Resolve where the symbols a TypeScript file imports are actually declared."""

from .models import (
    DeclarationKind,
    ExportEntry,
    ExportKind,
    ImportBinding,
    ResolvedImport,
    SourceFile,
)
from .project import Project
from .resolvers import ExternalPackageResolver, ImportsScanner, build_imports_map

__version__ = "0.1.0"

__all__ = [
    "DeclarationKind",
    "ExportEntry",
    "ExportKind",
    "ExternalPackageResolver",
    "ImportBinding",
    "ImportsScanner",
    "Project",
    "ResolvedImport",
    "SourceFile",
    "build_imports_map",
]
