"""Run-scoped stores used by the resolvers."""

from .specifier_cache import SpecifierCache

__all__ = ["SpecifierCache"]
