"""Classification of exports and the walk through re-export ("barrel") chains."""

from __future__ import annotations

from typing import FrozenSet, Optional, Set, Tuple

from ..logging import get_logger
from ..models import ExportEntry, ExportKind, SourceFile
from .modules import ModuleResolver

logger = get_logger("resolvers.barrels")

Resolution = Tuple[SourceFile, ExportEntry]


def classify_export(source_file: SourceFile, name: str) -> Optional[ExportEntry]:
    """Return how ``source_file`` exports ``name``, ignoring wildcard re-exports.

    A direct declaration wins over any re-export of the same name; otherwise
    the first matching export statement in source order wins.
    """
    entries = source_file.exports_named(name)
    for entry in entries:
        if entry.kind is ExportKind.DIRECT:
            return entry
    return entries[0] if entries else None


class BarrelResolver:
    """Follows named and wildcard re-exports until a direct declaration is found.

    Precedence inside one file is direct declaration, then named re-exports,
    then ``export *`` statements, each in source order. A named re-export
    whose target cannot be resolved falls through to the wildcard candidates.
    Every branch carries the set of files already on its path; re-entering
    one of them yields nothing, so mutually re-exporting barrels terminate.

    Failed ``(path, name)`` lookups are remembered until :meth:`clear`, so
    layered ``index.ts`` files that share sub-barrels are walked once per
    name. A failure is only remembered when no file on its walk was cut off
    by the cycle guard, since such a result depends on the path taken.
    """

    def __init__(self, modules: ModuleResolver) -> None:
        self.modules = modules
        self._misses: Set[Tuple[str, str]] = set()

    def clear(self) -> None:
        """Forget remembered failures, e.g. after files were added to the project."""
        self._misses.clear()

    def resolve_export(
        self,
        source_file: SourceFile,
        name: str,
        visited: FrozenSet[str] = frozenset(),
    ) -> Optional[Resolution]:
        found, _ = self._resolve(source_file, name, visited)
        return found

    def _resolve(
        self, source_file: SourceFile, name: str, visited: FrozenSet[str]
    ) -> Tuple[Optional[Resolution], bool]:
        """Return the resolution and whether the cycle guard pruned the walk."""
        if source_file.path in visited:
            logger.debug("Re-export cycle through %s while resolving %s", source_file.path, name)
            return None, True
        key = (source_file.path, name)
        if key in self._misses:
            return None, False
        visited = visited | {source_file.path}

        classified = classify_export(source_file, name)
        if classified is not None and classified.kind is ExportKind.DIRECT:
            return (source_file, classified), False

        pruned = False
        for entry in source_file.exports_named(name):
            if entry.kind is ExportKind.NAMED_REEXPORT:
                found, cut = self._follow(source_file, entry.specifier, entry.original_name, visited)
                if found is not None:
                    return found, False
                pruned = pruned or cut

        for entry in source_file.wildcard_exports():
            found, cut = self._follow(source_file, entry.specifier, name, visited)
            if found is not None:
                return found, False
            pruned = pruned or cut

        if not pruned:
            self._misses.add(key)
        return None, pruned

    def _follow(
        self,
        source_file: SourceFile,
        specifier: Optional[str],
        name: Optional[str],
        visited: FrozenSet[str],
    ) -> Tuple[Optional[Resolution], bool]:
        if not specifier or not name:
            return None, False
        target = self.modules.resolve(specifier, source_file)
        if target is None:
            logger.debug("Re-export target %s in %s is unresolved", specifier, source_file.path)
            return None, False
        return self._resolve(target, name, visited)


__all__ = ["BarrelResolver", "Resolution", "classify_export"]
