"""Core data models shared across originmap components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class DeclarationKind(str, Enum):
    """Kinds of top-level declarations a file can export directly."""

    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    FUNCTION = "function"
    VARIABLE = "variable"
    TYPE_ALIAS = "type_alias"
    NAMESPACE = "namespace"


class ExportKind(str, Enum):
    """Discriminator for :class:`ExportEntry`."""

    DIRECT = "direct"
    NAMED_REEXPORT = "named_reexport"
    WILDCARD_REEXPORT = "wildcard_reexport"


@dataclass(frozen=True)
class ExportEntry:
    """One export of a source file.

    Only the fields relevant to ``kind`` are populated:

    * ``DIRECT``: ``name``, ``declaration_kind``, ``local_name`` and, for
      variables, ``initializer``.
    * ``NAMED_REEXPORT``: ``name``, ``original_name`` and ``specifier``.
    * ``WILDCARD_REEXPORT``: ``specifier`` only.
    """

    kind: ExportKind
    name: Optional[str] = None
    declaration_kind: Optional[DeclarationKind] = None
    local_name: Optional[str] = None
    initializer: Optional[str] = None
    original_name: Optional[str] = None
    specifier: Optional[str] = None
    line: int = 0

    @classmethod
    def direct(
        cls,
        name: str,
        declaration_kind: DeclarationKind,
        *,
        local_name: Optional[str] = None,
        initializer: Optional[str] = None,
        line: int = 0,
    ) -> "ExportEntry":
        return cls(
            kind=ExportKind.DIRECT,
            name=name,
            declaration_kind=declaration_kind,
            local_name=local_name or name,
            initializer=initializer,
            line=line,
        )

    @classmethod
    def named_reexport(
        cls, name: str, original_name: str, specifier: str, *, line: int = 0
    ) -> "ExportEntry":
        return cls(
            kind=ExportKind.NAMED_REEXPORT,
            name=name,
            original_name=original_name,
            specifier=specifier,
            line=line,
        )

    @classmethod
    def wildcard(cls, specifier: str, *, line: int = 0) -> "ExportEntry":
        return cls(kind=ExportKind.WILDCARD_REEXPORT, specifier=specifier, line=line)

    @property
    def is_terminal(self) -> bool:
        return self.kind is ExportKind.DIRECT


@dataclass(frozen=True)
class ImportBinding:
    """A named import inside a consuming file."""

    local_name: str
    imported_name: str
    specifier: str
    type_only: bool = False
    line: int = 0


@dataclass(frozen=True)
class Declaration:
    """A top-level declaration, exported or not."""

    name: str
    kind: DeclarationKind
    initializer: Optional[str] = None
    line: int = 0


@dataclass(eq=False)
class SourceFile:
    """Parsed view of a single TypeScript file.

    Equality is identity: the project store hands out one instance per path.
    ``on_disk`` is set for files read from the filesystem, whose own imports
    may in turn be loaded from disk.
    """

    path: str
    text: str = ""
    imports: List[ImportBinding] = field(default_factory=list)
    exports: List[ExportEntry] = field(default_factory=list)
    declarations: Dict[str, Declaration] = field(default_factory=dict)
    on_disk: bool = False

    def exports_named(self, name: str) -> List[ExportEntry]:
        """Return non-wildcard exports published under ``name`` in source order."""
        return [
            entry
            for entry in self.exports
            if entry.kind is not ExportKind.WILDCARD_REEXPORT and entry.name == name
        ]

    def wildcard_exports(self) -> List[ExportEntry]:
        return [entry for entry in self.exports if entry.kind is ExportKind.WILDCARD_REEXPORT]

    def named_import(self, local_name: str) -> Optional[ImportBinding]:
        for binding in self.imports:
            if binding.local_name == local_name:
                return binding
        return None

    def __repr__(self) -> str:
        return f"SourceFile(path={self.path!r})"


@dataclass(frozen=True)
class ResolvedImport:
    """Where an imported local name is ultimately declared."""

    local_name: str
    imported_name: str
    source_file: SourceFile
    export: ExportEntry

    @property
    def path(self) -> str:
        return self.source_file.path

    @property
    def declaration_kind(self) -> Optional[DeclarationKind]:
        return self.export.declaration_kind


ImportsMap = Dict[str, ResolvedImport]


__all__ = [
    "Declaration",
    "DeclarationKind",
    "ExportEntry",
    "ExportKind",
    "ImportBinding",
    "ImportsMap",
    "ResolvedImport",
    "SourceFile",
]
