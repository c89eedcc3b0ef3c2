"""In-memory project store of parsed TypeScript files."""

from __future__ import annotations

import os
import posixpath
import threading
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from .config import OriginMapConfig
from .logging import get_logger
from .models import SourceFile
from .syntax import TypeScriptParser

logger = get_logger("project")

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".idea",
    ".originmap",
    "coverage",
}


def normalise_path(path: str | os.PathLike[str]) -> str:
    """Return an absolute, POSIX-style, dot-free form of ``path``."""
    text = os.fspath(path).replace("\\", "/")
    if not posixpath.isabs(text):
        text = Path(text).absolute().as_posix()
    return posixpath.normpath(text)


def is_relative_specifier(specifier: str) -> bool:
    return specifier in {".", ".."} or specifier.startswith(("./", "../"))


class Project:
    """Holds parsed source files keyed by absolute path.

    The store only grows: files are added by the host or lazily by external
    package resolution, and existing entries are replaced only on an explicit
    ``overwrite``. Inserts are serialised by a lock so concurrent resolution
    passes get one instance per path.
    """

    def __init__(
        self,
        config: OriginMapConfig | None = None,
        *,
        parser: TypeScriptParser | None = None,
    ) -> None:
        self.config = config or OriginMapConfig(root=Path.cwd())
        self._parser = parser or TypeScriptParser()
        self._files: Dict[str, SourceFile] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return normalise_path(path) in self._files

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(list(self._files.values()))

    def get_source_file(self, path: str | os.PathLike[str]) -> Optional[SourceFile]:
        return self._files.get(normalise_path(path))

    def get_source_files(self) -> List[SourceFile]:
        return list(self._files.values())

    def create_source_file(
        self, path: str | os.PathLike[str], text: str, *, overwrite: bool = False
    ) -> SourceFile:
        """Parse ``text`` and add it under ``path``."""
        key = normalise_path(path)
        with self._lock:
            if key in self._files and not overwrite:
                raise FileExistsError(f"Source file already exists in project: {key}")
            source_file = self._parser.parse(key, text)
            self._files[key] = source_file
        return source_file

    def add_source_file_at_path(self, path: str | os.PathLike[str]) -> SourceFile:
        """Return the file at ``path``, reading and parsing it from disk if needed."""
        key = normalise_path(path)
        with self._lock:
            existing = self._files.get(key)
            if existing is not None:
                return existing
            try:
                text = Path(key).read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                raise OSError(f"Source file is not valid UTF-8: {key}") from exc
            source_file = self._parser.parse(key, text)
            source_file.on_disk = True
            self._files[key] = source_file
        logger.debug("Added %s to project", key)
        return source_file

    def add_source_files_from_directory(self, root: str | os.PathLike[str]) -> List[SourceFile]:
        """Add every source file below ``root`` that is not excluded."""
        root_path = Path(normalise_path(root))
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        added: List[SourceFile] = []
        for path in _iter_source_files(root_path, self.config):
            try:
                added.append(self.add_source_file_at_path(path))
            except OSError as exc:
                logger.warning("Skipping unreadable file %s: %s", path, exc)
        logger.info("Loaded %d source files from %s", len(added), root_path)
        return added

    # ------------------------------------------------------------------
    # Module resolution

    def resolve_module_specifier(
        self, specifier: str, from_file: SourceFile
    ) -> Optional[SourceFile]:
        """Resolve ``specifier`` as written in ``from_file`` using relative paths and aliases."""
        if not specifier:
            return None
        for base in self._candidate_bases(specifier, from_file.path):
            found = self._match_candidates(base, allow_disk=from_file.on_disk)
            if found is not None:
                return found
        return None

    def _candidate_bases(self, specifier: str, from_path: str) -> Iterator[str]:
        if is_relative_specifier(specifier):
            yield posixpath.join(posixpath.dirname(from_path), specifier)
            return
        if posixpath.isabs(specifier):
            yield specifier
            return

        compiler = self.config.compiler
        alias_base = compiler.alias_base(self.config.root).as_posix()
        for _pattern, targets in _matching_aliases(compiler.paths, specifier):
            for target in targets:
                yield posixpath.join(alias_base, target)
        # Bare specifiers only resolve against an explicit baseUrl.
        if compiler.base_url is not None:
            yield posixpath.join(compiler.base_url.as_posix(), specifier)

    def _match_candidates(self, base: str, *, allow_disk: bool) -> Optional[SourceFile]:
        for candidate in self._candidate_paths(normalise_path(base)):
            found = self._files.get(candidate)
            if found is not None:
                return found
            disk_allowed = allow_disk or self.config.resolver.load_from_disk
            if disk_allowed and os.path.isfile(candidate):
                try:
                    return self.add_source_file_at_path(candidate)
                except OSError as exc:
                    logger.debug("Could not load %s: %s", candidate, exc)
        return None

    def _candidate_paths(self, base: str) -> Iterator[str]:
        resolver = self.config.resolver
        lower = base.lower()
        if resolver.is_source_path(base):
            yield base
        for compiled, source in resolver.extension_map.items():
            if lower.endswith(compiled):
                yield base[: -len(compiled)] + source
        for ext in resolver.source_extensions:
            yield base + ext
        for ext in resolver.source_extensions:
            yield posixpath.join(base, "index" + ext)


def _matching_aliases(
    paths: Dict[str, List[str]], specifier: str
) -> List[tuple[str, List[str]]]:
    """Return ``(pattern, substituted targets)`` pairs, most specific prefix first."""
    matches: List[tuple[int, str, List[str]]] = []
    for pattern, targets in paths.items():
        if "*" not in pattern:
            if pattern == specifier:
                matches.append((len(pattern) + 1, pattern, list(targets)))
            continue
        prefix, _, suffix = pattern.partition("*")
        if not specifier.startswith(prefix) or not specifier.endswith(suffix):
            continue
        if len(specifier) < len(prefix) + len(suffix):
            continue
        captured = specifier[len(prefix) : len(specifier) - len(suffix)]
        matches.append(
            (len(prefix), pattern, [target.replace("*", captured, 1) for target in targets])
        )
    matches.sort(key=lambda item: item[0], reverse=True)
    return [(pattern, targets) for _, pattern, targets in matches]


def _is_excluded(rel_path: str, is_dir: bool, patterns: Sequence[str]) -> bool:
    for raw in patterns:
        pattern = raw.strip()
        directory_only = pattern.endswith("/")
        pattern = pattern.strip("/")
        if not pattern or (directory_only and not is_dir):
            continue
        if "/" in pattern:
            if fnmatchcase(rel_path, pattern):
                return True
            continue
        if any(fnmatchcase(part, pattern) for part in rel_path.split("/")):
            return True
    return False


def _iter_source_files(root: Path, config: OriginMapConfig) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in sorted(dirnames):
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if name in _EXCLUDED_DIRS or _is_excluded(rel_path, True, config.exclude_paths):
                continue
            kept.append(name)
        dirnames[:] = kept

        for filename in sorted(filenames):
            if not config.resolver.is_source_path(filename):
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _is_excluded(rel_path, False, config.exclude_paths):
                continue
            yield current_dir / filename


__all__ = ["Project", "is_relative_specifier", "normalise_path"]
