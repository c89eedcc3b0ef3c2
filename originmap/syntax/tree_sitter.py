"""Tree-sitter powered extraction of TypeScript imports and exports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ..logging import get_logger
from ..models import Declaration, DeclarationKind, ExportEntry, ImportBinding, SourceFile

logger = get_logger("syntax")

_DECLARATION_KINDS: Dict[str, DeclarationKind] = {
    "class_declaration": DeclarationKind.CLASS,
    "abstract_class_declaration": DeclarationKind.CLASS,
    "interface_declaration": DeclarationKind.INTERFACE,
    "enum_declaration": DeclarationKind.ENUM,
    "function_declaration": DeclarationKind.FUNCTION,
    "generator_function_declaration": DeclarationKind.FUNCTION,
    "function_signature": DeclarationKind.FUNCTION,
    "type_alias_declaration": DeclarationKind.TYPE_ALIAS,
    "internal_module": DeclarationKind.NAMESPACE,
    "module": DeclarationKind.NAMESPACE,
}

_VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}


@dataclass
class _Extraction:
    imports: List[ImportBinding] = field(default_factory=list)
    declarations: Dict[str, Declaration] = field(default_factory=dict)
    export_nodes: List[Node] = field(default_factory=list)


class TypeScriptParser:
    """Parses TypeScript source text into :class:`SourceFile` objects.

    Instances cache one tree-sitter parser per dialect and are not thread-safe;
    callers that share a parser across threads must serialise ``parse``.
    """

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}

    def parse(self, path: str, text: str) -> SourceFile:
        source_bytes = text.encode("utf-8")
        tree = self._get_parser(self._dialect_for_file(path)).parse(source_bytes)
        root = tree.root_node
        if root.has_error:
            logger.debug("Syntax errors in %s; extracting what parsed cleanly", path)

        extraction = _Extraction()
        for statement in root.named_children:
            self._collect_statement(statement, extraction)

        exports: List[ExportEntry] = []
        for node in extraction.export_nodes:
            exports.extend(self._collect_exports(node, extraction))

        return SourceFile(
            path=path,
            text=text,
            imports=extraction.imports,
            exports=exports,
            declarations=extraction.declarations,
        )

    def _get_parser(self, dialect: str) -> Parser:
        parser = self._parsers.get(dialect)
        if parser is not None:
            return parser
        if dialect == "tsx":
            language = Language(tree_sitter_typescript.language_tsx())
        else:
            language = Language(tree_sitter_typescript.language_typescript())
        parser = Parser(language)
        self._parsers[dialect] = parser
        return parser

    @staticmethod
    def _dialect_for_file(path: str) -> str:
        return "tsx" if path.lower().endswith(".tsx") else "typescript"

    @staticmethod
    def _node_text(node: Optional[Node]) -> str:
        if node is None or node.text is None:
            return ""
        return node.text.decode("utf-8", errors="ignore")

    @classmethod
    def _string_value(cls, node: Optional[Node]) -> Optional[str]:
        text = cls._node_text(node)
        if len(text) >= 2 and text[0] == text[-1] and text[0] in {"'", '"', "`"}:
            return text[1:-1]
        return text or None

    @classmethod
    def _export_name(cls, node: Optional[Node]) -> str:
        # `export { "quoted name" as x }` uses string nodes for module export names.
        if node is not None and node.type == "string":
            return cls._string_value(node) or ""
        return cls._node_text(node)

    @staticmethod
    def _line(node: Node) -> int:
        return node.start_point[0] + 1

    # ------------------------------------------------------------------
    # Top-level statements

    def _collect_statement(self, node: Node, extraction: _Extraction) -> None:
        if node.type == "import_statement":
            extraction.imports.extend(self._collect_imports(node))
        elif node.type == "export_statement":
            extraction.export_nodes.append(node)
            for declaration in self._exported_declarations(node):
                for item in self._declarations_of(declaration):
                    extraction.declarations.setdefault(item.name, item)
        elif node.type == "expression_statement":
            for child in node.named_children:
                for item in self._declarations_of(child):
                    extraction.declarations.setdefault(item.name, item)
        else:
            for item in self._declarations_of(node):
                extraction.declarations.setdefault(item.name, item)

    def _collect_imports(self, node: Node) -> Iterator[ImportBinding]:
        specifier = self._string_value(node.child_by_field_name("source"))
        if not specifier:
            return
        type_only = any(child.type == "type" for child in node.children)
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                # Default (identifier) and namespace imports are not named bindings.
                if part.type != "named_imports":
                    continue
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    imported = self._export_name(spec.child_by_field_name("name"))
                    alias = self._node_text(spec.child_by_field_name("alias"))
                    if not imported:
                        continue
                    yield ImportBinding(
                        local_name=alias or imported,
                        imported_name=imported,
                        specifier=specifier,
                        type_only=type_only or any(c.type == "type" for c in spec.children),
                        line=self._line(spec),
                    )

    @staticmethod
    def _is_default_export(node: Node) -> bool:
        return any(child.type == "default" for child in node.children)

    def _exported_declarations(self, node: Node) -> Iterator[Node]:
        if self._is_default_export(node):
            return
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            yield declaration
            return
        for child in node.named_children:
            if child.type in _DECLARATION_KINDS or child.type in _VARIABLE_DECLARATIONS:
                yield child
            elif child.type == "ambient_declaration":
                yield child

    def _declarations_of(self, node: Node) -> Iterator[Declaration]:
        if node.type == "ambient_declaration":
            for child in node.named_children:
                yield from self._declarations_of(child)
            return
        if node.type in _VARIABLE_DECLARATIONS:
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                value = declarator.child_by_field_name("value")
                initializer = self._node_text(value) if value is not None else None
                for name in self._pattern_names(declarator.child_by_field_name("name")):
                    yield Declaration(
                        name=name,
                        kind=DeclarationKind.VARIABLE,
                        initializer=initializer,
                        line=self._line(declarator),
                    )
            return
        kind = _DECLARATION_KINDS.get(node.type)
        if kind is None:
            return
        name_node = node.child_by_field_name("name")
        # `declare module "pkg" { ... }` names a module, not a symbol.
        if name_node is None or name_node.type == "string":
            return
        name = self._node_text(name_node)
        if name:
            yield Declaration(name=name, kind=kind, line=self._line(node))

    def _pattern_names(self, node: Optional[Node]) -> Iterable[str]:
        if node is None:
            return []
        if node.type in {"identifier", "shorthand_property_identifier_pattern"}:
            return [self._node_text(node)]
        if node.type == "pair_pattern":
            return self._pattern_names(node.child_by_field_name("value"))
        if node.type in {"assignment_pattern", "object_assignment_pattern"}:
            return self._pattern_names(node.child_by_field_name("left"))
        if node.type in {"object_pattern", "array_pattern", "rest_pattern"}:
            names: List[str] = []
            for child in node.named_children:
                names.extend(self._pattern_names(child))
            return names
        return []

    # ------------------------------------------------------------------
    # Export statements

    def _collect_exports(self, node: Node, extraction: _Extraction) -> Iterator[ExportEntry]:
        if self._is_default_export(node):
            return
        line = self._line(node)
        source = self._string_value(node.child_by_field_name("source"))

        declarations = list(self._exported_declarations(node))
        if declarations:
            for declaration in declarations:
                for item in self._declarations_of(declaration):
                    yield ExportEntry.direct(
                        item.name,
                        item.kind,
                        initializer=item.initializer,
                        line=item.line,
                    )
            return

        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is None:
            # `export * from 'x'`; `export * as ns from 'x'` binds a namespace and is skipped.
            has_star = any(child.type == "*" for child in node.children)
            if source and has_star:
                yield ExportEntry.wildcard(source, line=line)
            return

        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            local = self._export_name(spec.child_by_field_name("name"))
            alias = self._export_name(spec.child_by_field_name("alias"))
            exported = alias or local
            if not local or local == "default" or exported == "default":
                continue
            if source:
                yield ExportEntry.named_reexport(exported, local, source, line=line)
                continue
            declaration = extraction.declarations.get(local)
            if declaration is not None:
                yield ExportEntry.direct(
                    exported,
                    declaration.kind,
                    local_name=local,
                    initializer=declaration.initializer,
                    line=declaration.line,
                )
                continue
            binding = next((b for b in extraction.imports if b.local_name == local), None)
            if binding is not None:
                yield ExportEntry.named_reexport(
                    exported, binding.imported_name, binding.specifier, line=line
                )


__all__ = ["TypeScriptParser"]
