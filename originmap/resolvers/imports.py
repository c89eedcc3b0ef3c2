"""Builds the map from imported local names to their declaring files."""

from __future__ import annotations

from ..logging import get_logger
from ..models import ImportsMap, ResolvedImport, SourceFile
from ..project import Project
from .barrels import BarrelResolver
from .external import ExternalPackageResolver
from .modules import ModuleResolver

logger = get_logger("resolvers.imports")


class ImportsScanner:
    """Resolves every named import of a file to the declaration behind it.

    Resolution is best effort. Bindings whose module cannot be found, or whose
    name is not exported along any re-export chain, are left out of the map.
    """

    def __init__(
        self,
        project: Project,
        external: ExternalPackageResolver | None = None,
    ) -> None:
        self.project = project
        self.modules = ModuleResolver(project, external)
        self.barrels = BarrelResolver(self.modules)

    def build_imports_map(self, source_file: SourceFile) -> ImportsMap:
        self.barrels.clear()
        imports_map: ImportsMap = {}
        for binding in source_file.imports:
            target = self.modules.resolve(binding.specifier, source_file)
            if target is None:
                logger.debug(
                    "%s:%d: cannot resolve module %r for %s",
                    source_file.path,
                    binding.line,
                    binding.specifier,
                    binding.local_name,
                )
                continue

            found = self.barrels.resolve_export(target, binding.imported_name)
            if found is None:
                logger.debug(
                    "%s:%d: %s is not exported by %s",
                    source_file.path,
                    binding.line,
                    binding.imported_name,
                    target.path,
                )
                continue

            declaring_file, export = found
            imports_map[binding.local_name] = ResolvedImport(
                local_name=binding.local_name,
                imported_name=binding.imported_name,
                source_file=declaring_file,
                export=export,
            )
        return imports_map


def build_imports_map(
    source_file: SourceFile,
    project: Project,
    *,
    external: ExternalPackageResolver | None = None,
) -> ImportsMap:
    """Convenience wrapper around :meth:`ImportsScanner.build_imports_map`."""
    return ImportsScanner(project, external).build_imports_map(source_file)


__all__ = ["ImportsScanner", "build_imports_map"]
