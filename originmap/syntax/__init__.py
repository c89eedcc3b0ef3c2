"""Source parsing for the import-origin resolver."""

from .tree_sitter import TypeScriptParser

__all__ = ["TypeScriptParser"]
