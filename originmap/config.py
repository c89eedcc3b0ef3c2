"""Configuration loading for originmap (.originmap.yml and tsconfig.json)."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

import yaml

from .logging import get_logger

logger = get_logger("config")

CONFIG_FILENAME = ".originmap.yml"

DEFAULT_SOURCE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".mts", ".cts")
DEFAULT_EXTENSION_MAP = {
    ".js": ".ts",
    ".mjs": ".mts",
    ".cjs": ".cts",
    ".jsx": ".tsx",
}

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed."""


@dataclass
class ResolverConfig:
    """How specifiers are turned into source files."""

    source_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS))
    extension_map: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_EXTENSION_MAP))
    external_packages: bool = True
    load_from_disk: bool = False

    def is_source_path(self, path: str) -> bool:
        lower = path.lower()
        return any(lower.endswith(ext) for ext in self.source_extensions)


@dataclass
class CompilerOptions:
    """The subset of TypeScript compiler options that affects module resolution."""

    base_url: Optional[Path] = None
    paths: Dict[str, List[str]] = field(default_factory=dict)
    # Directory `paths` targets are relative to when `baseUrl` is unset.
    paths_base: Optional[Path] = None

    def alias_base(self, root: Path) -> Path:
        return self.base_url or self.paths_base or root


@dataclass
class OriginMapConfig:
    """Represents the settings defined in .originmap.yml."""

    root: Path
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    compiler: CompilerOptions = field(default_factory=CompilerOptions)
    exclude_paths: List[str] = field(default_factory=list)


def load_config(config_path: Path) -> OriginMapConfig:
    """Load configuration from disk.

    ``config_path`` may be a project directory or a path to the config file.
    A missing file yields defaults, with ``tsconfig.json`` still honoured when
    present next to it.
    """
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    resolver = ResolverConfig()
    resolver_data = _as_dict(data.get("resolver"))
    if resolver_data:
        extensions = _as_str_list(resolver_data.get("source_extensions"))
        if extensions:
            resolver.source_extensions = [_normalise_extension(ext) for ext in extensions]
        extension_map = _as_dict(resolver_data.get("extension_map"))
        if extension_map:
            resolver.extension_map = {
                _normalise_extension(str(key)): _normalise_extension(str(value))
                for key, value in extension_map.items()
                if isinstance(value, str)
            }
        external = _as_bool(resolver_data.get("external_packages"))
        if external is not None:
            resolver.external_packages = external
        from_disk = _as_bool(resolver_data.get("load_from_disk"))
        if from_disk is not None:
            resolver.load_from_disk = from_disk

    compiler_data = _as_dict(data.get("compiler"))
    tsconfig_name = _as_str(compiler_data.get("tsconfig")) or "tsconfig.json"
    tsconfig_path = root / tsconfig_name
    compiler = load_tsconfig(tsconfig_path) if tsconfig_path.exists() else CompilerOptions()

    base_url = _as_str(compiler_data.get("base_url"))
    if base_url is not None:
        compiler.base_url = (root / base_url).resolve()
    paths = _as_paths(compiler_data.get("paths"))
    if paths:
        compiler.paths.update(paths)
    if paths and compiler.base_url is None and compiler.paths_base is None:
        compiler.paths_base = root

    return OriginMapConfig(
        root=root,
        resolver=resolver,
        compiler=compiler,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
    )


def load_tsconfig(path: Path, _seen: Optional[Set[Path]] = None) -> CompilerOptions:
    """Read ``baseUrl`` and ``paths`` from a tsconfig file, following ``extends``."""
    seen = _seen if _seen is not None else set()
    resolved = path.resolve()
    if resolved in seen:
        logger.debug("Ignoring circular tsconfig extends at %s", resolved)
        return CompilerOptions()
    seen.add(resolved)

    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    try:
        data = json.loads(_strip_jsonc(text))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain an object at the root")

    options = CompilerOptions()
    extends = data.get("extends")
    for parent in extends if isinstance(extends, list) else [extends]:
        if not isinstance(parent, str):
            continue
        parent_path = _resolve_extends(resolved.parent, parent)
        if parent_path is None:
            logger.debug("tsconfig %s extends unknown config %s", path, parent)
            continue
        inherited = load_tsconfig(parent_path, seen)
        if inherited.base_url is not None:
            options.base_url = inherited.base_url
        if inherited.paths_base is not None:
            options.paths_base = inherited.paths_base
        options.paths.update(inherited.paths)

    compiler_options = _as_dict(data.get("compilerOptions"))
    base_url = _as_str(compiler_options.get("baseUrl"))
    if base_url is not None:
        options.base_url = (resolved.parent / base_url).resolve()
    paths = _as_paths(compiler_options.get("paths"))
    if paths:
        # Child paths replace inherited ones wholesale, as tsc does.
        options.paths = paths
        options.paths_base = resolved.parent
    return options


def _resolve_extends(directory: Path, reference: str) -> Optional[Path]:
    if reference.startswith((".", "/")):
        candidate = (directory / reference)
        if candidate.suffix != ".json" and not candidate.exists():
            candidate = candidate.with_name(candidate.name + ".json")
        return candidate if candidate.exists() else None
    for ancestor in (directory, *directory.parents):
        candidate = ancestor / "node_modules" / reference
        if candidate.is_dir():
            candidate = candidate / "tsconfig.json"
        elif candidate.suffix != ".json":
            candidate = candidate.with_name(candidate.name + ".json")
        if candidate.exists():
            return candidate
    return None


def _strip_jsonc(text: str) -> str:
    """Remove comments and trailing commas while leaving string literals intact."""
    out: List[str] = []
    index = 0
    length = len(text)
    in_string = False
    while index < length:
        char = text[index]
        if in_string:
            out.append(char)
            if char == "\\" and index + 1 < length:
                out.append(text[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            index += 1
            continue
        if text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline
            continue
        if text.startswith("/*", index):
            end = text.find("*/", index + 2)
            index = length if end == -1 else end + 2
            continue
        out.append(char)
        index += 1
    return _TRAILING_COMMA.sub(r"\1", "".join(out))


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _normalise_extension(value: str) -> str:
    value = value.strip().lower()
    return value if value.startswith(".") else f".{value}"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _as_paths(value: Any) -> Dict[str, List[str]]:
    paths: Dict[str, List[str]] = {}
    for pattern, targets in _as_dict(value).items():
        target_list = _as_str_list(targets)
        if isinstance(pattern, str) and target_list:
            paths[pattern] = target_list
    return paths


__all__ = [
    "CONFIG_FILENAME",
    "CompilerOptions",
    "ConfigError",
    "OriginMapConfig",
    "ResolverConfig",
    "load_config",
    "load_tsconfig",
]
