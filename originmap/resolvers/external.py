"""Node-style package resolution for bare module specifiers."""

from __future__ import annotations

import json
import os
import posixpath
from typing import Any, Iterator, Optional, Tuple

from ..config import ResolverConfig
from ..logging import get_logger
from ..project import normalise_path
from ..stores import SpecifierCache

logger = get_logger("resolvers.external")

# Conditions honoured by CommonJS `require.resolve`.
_EXPORT_CONDITIONS = ("require", "node", "node-addons", "default")
_FILE_EXTENSIONS = (".js", ".json", ".node")


class _PackagePathNotExported(LookupError):
    """A package declares `exports` but not the requested subpath."""


class ExternalPackageResolver:
    """Locates the source file behind a bare specifier such as ``zod`` or ``@repo/schemas``.

    Follows Node's ``require.resolve`` search through ancestor ``node_modules``
    directories, then maps the compiled result back to its TypeScript source.
    Anything that cannot be mapped to an existing source file is reported as
    unresolved (``None``); no failure here ever propagates.
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        *,
        cache: SpecifierCache | None = None,
    ) -> None:
        self.config = config or ResolverConfig()
        self.cache = cache if cache is not None else SpecifierCache()

    def resolve(self, specifier: str, from_path: str) -> Optional[str]:
        if not is_bare_specifier(specifier):
            return None
        from_dir = posixpath.dirname(normalise_path(from_path))

        cached, value = self.cache.lookup(from_dir, specifier)
        if cached:
            return value

        try:
            candidate = self._node_resolve(specifier, from_dir)
            resolved = self._to_source(candidate) if candidate else None
        except _PackagePathNotExported:
            logger.debug("%s is not exported by its package", specifier)
            resolved = None
        except (OSError, ValueError) as exc:
            logger.debug("Package resolution failed for %s from %s: %s", specifier, from_dir, exc)
            resolved = None

        if resolved is None:
            logger.debug("No source file found for package specifier %s", specifier)
        self.cache.store(from_dir, specifier, resolved)
        return resolved

    # ------------------------------------------------------------------
    # require.resolve

    def _node_resolve(self, specifier: str, from_dir: str) -> Optional[str]:
        name, subpath = split_package_specifier(specifier)
        for modules_dir in _node_modules_dirs(from_dir):
            package_dir = posixpath.join(modules_dir, name)
            if not os.path.isdir(package_dir):
                continue
            manifest = _read_package_json(package_dir)
            exports = manifest.get("exports") if manifest else None
            if exports is not None:
                target = _resolve_exports(package_dir, exports, subpath)
                if target is None:
                    raise _PackagePathNotExported(specifier)
                return os.path.realpath(target) if os.path.isfile(target) else None

            target_path = posixpath.join(package_dir, subpath) if subpath else package_dir
            found = _load_as_file(target_path) or _load_as_directory(target_path)
            if found is not None:
                return os.path.realpath(found)
        return None

    def _to_source(self, path: str) -> Optional[str]:
        path = normalise_path(path)
        lower = path.lower()
        for compiled, source in self.config.extension_map.items():
            if lower.endswith(compiled):
                candidate = path[: -len(compiled)] + source
                return candidate if os.path.isfile(candidate) else None
        if self.config.is_source_path(path):
            return path
        return None


def is_bare_specifier(specifier: str) -> bool:
    """Return True for package-style specifiers (not relative, not absolute)."""
    if not specifier or specifier.startswith((".", "/")):
        return False
    return not os.path.isabs(specifier)


def split_package_specifier(specifier: str) -> Tuple[str, str]:
    """Split ``@scope/name/sub/path`` into ``("@scope/name", "sub/path")``."""
    if specifier.startswith("node:"):
        raise ValueError(f"Built-in module specifier: {specifier}")
    parts = specifier.split("/")
    if specifier.startswith("@"):
        if len(parts) < 2 or not parts[1]:
            raise ValueError(f"Invalid scoped package specifier: {specifier}")
        return "/".join(parts[:2]), "/".join(parts[2:])
    if not parts[0]:
        raise ValueError(f"Invalid package specifier: {specifier}")
    return parts[0], "/".join(parts[1:])


def _node_modules_dirs(from_dir: str) -> Iterator[str]:
    current = from_dir
    while True:
        if posixpath.basename(current) != "node_modules":
            yield posixpath.join(current, "node_modules")
        parent = posixpath.dirname(current)
        if parent == current:
            return
        current = parent


def _read_package_json(directory: str) -> Optional[dict]:
    manifest_path = posixpath.join(directory, "package.json")
    if not os.path.isfile(manifest_path):
        return None
    with open(manifest_path, encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Malformed {manifest_path}: {exc}") from exc
    return data if isinstance(data, dict) else None


def _load_as_file(path: str) -> Optional[str]:
    if os.path.isfile(path):
        return path
    for ext in _FILE_EXTENSIONS:
        if os.path.isfile(path + ext):
            return path + ext
    return None


def _load_index(directory: str) -> Optional[str]:
    for ext in _FILE_EXTENSIONS:
        candidate = posixpath.join(directory, "index" + ext)
        if os.path.isfile(candidate):
            return candidate
    return None


def _load_as_directory(directory: str) -> Optional[str]:
    if not os.path.isdir(directory):
        return None
    manifest = _read_package_json(directory)
    main = manifest.get("main") if manifest else None
    if isinstance(main, str) and main:
        main_path = posixpath.normpath(posixpath.join(directory, main))
        found = _load_as_file(main_path) or _load_index(main_path)
        if found is not None:
            return found
    return _load_index(directory)


def _resolve_exports(package_dir: str, exports: Any, subpath: str) -> Optional[str]:
    """Apply the package ``exports`` map for ``subpath`` (``""`` means the package root)."""
    request = f"./{subpath}" if subpath else "."
    if isinstance(exports, dict) and any(str(key).startswith(".") for key in exports):
        subpaths = exports
    else:
        subpaths = {".": exports}

    if request in subpaths and "*" not in request:
        return _resolve_export_target(package_dir, subpaths[request], "")

    best: Optional[Tuple[str, str]] = None
    for key in subpaths:
        if not isinstance(key, str) or key.count("*") != 1:
            continue
        prefix, _, suffix = key.partition("*")
        if not request.startswith(prefix) or not request.endswith(suffix):
            continue
        if len(request) < len(prefix) + len(suffix):
            continue
        if best is None or len(prefix) > len(best[0].partition("*")[0]):
            best = (key, request[len(prefix) : len(request) - len(suffix)])
    if best is None:
        return None
    key, captured = best
    return _resolve_export_target(package_dir, subpaths[key], captured)


def _resolve_export_target(package_dir: str, target: Any, captured: str) -> Optional[str]:
    if isinstance(target, str):
        if not target.startswith("./"):
            return None
        return posixpath.normpath(posixpath.join(package_dir, target.replace("*", captured)))
    if isinstance(target, list):
        for item in target:
            resolved = _resolve_export_target(package_dir, item, captured)
            if resolved is not None:
                return resolved
        return None
    if isinstance(target, dict):
        for condition, value in target.items():
            if condition in _EXPORT_CONDITIONS:
                resolved = _resolve_export_target(package_dir, value, captured)
                if resolved is not None:
                    return resolved
        return None
    return None


__all__ = ["ExternalPackageResolver", "is_bare_specifier", "split_package_specifier"]
