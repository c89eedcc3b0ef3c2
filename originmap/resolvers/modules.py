"""Two-tier module specifier resolution."""

from __future__ import annotations

from typing import Optional

from ..logging import get_logger
from ..models import SourceFile
from ..project import Project
from .external import ExternalPackageResolver, is_bare_specifier

logger = get_logger("resolvers.modules")


class ModuleResolver:
    """Turns a specifier written in a file into a project ``SourceFile``.

    The project's own rules (relative paths, ``paths`` aliases, ``baseUrl``)
    are tried first; bare specifiers then fall back to ``node_modules`` lookup.
    Files found that way are added to the project before being returned.
    """

    def __init__(
        self,
        project: Project,
        external: ExternalPackageResolver | None = None,
    ) -> None:
        self.project = project
        if external is None and project.config.resolver.external_packages:
            external = ExternalPackageResolver(project.config.resolver)
        self.external = external

    def resolve(self, specifier: str, from_file: SourceFile) -> Optional[SourceFile]:
        resolved = self.project.resolve_module_specifier(specifier, from_file)
        if resolved is not None:
            return resolved
        if self.external is None or not is_bare_specifier(specifier):
            return None

        path = self.external.resolve(specifier, from_file.path)
        if path is None:
            return None
        try:
            return self.project.add_source_file_at_path(path)
        except OSError as exc:
            logger.debug("Resolved %s to %s but could not load it: %s", specifier, path, exc)
            return None


__all__ = ["ModuleResolver"]
