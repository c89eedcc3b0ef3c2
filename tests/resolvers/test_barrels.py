"""Tests for originmap.resolvers.barrels."""

from __future__ import annotations

from originmap.models import ExportKind
from originmap.project import Project
from originmap.resolvers import BarrelResolver, ModuleResolver, classify_export


def _resolver(project: Project) -> BarrelResolver:
    return BarrelResolver(ModuleResolver(project))


def test_classify_export_prefers_direct_declaration(project: Project) -> None:
    barrel = project.create_source_file(
        "/test/index.ts",
        """
        export { userSchema } from './user.schema';
        export const userSchema = {};
        """,
    )

    entry = classify_export(barrel, "userSchema")

    assert entry is not None
    assert entry.kind is ExportKind.DIRECT


def test_classify_export_reports_named_reexport_and_absence(project: Project) -> None:
    barrel = project.create_source_file(
        "/test/index.ts",
        """
        export { a as b } from './a';
        export * from './c';
        """,
    )

    entry = classify_export(barrel, "b")

    assert entry is not None
    assert entry.kind is ExportKind.NAMED_REEXPORT
    assert entry.original_name == "a"
    assert entry.specifier == "./a"
    assert classify_export(barrel, "fromWildcard") is None


def test_wildcards_are_tried_in_source_order(project: Project) -> None:
    first = project.create_source_file("/test/first.ts", "export const shared = 1;")
    project.create_source_file("/test/second.ts", "export const shared = 2;")
    barrel = project.create_source_file(
        "/test/index.ts",
        """
        export * from './missing';
        export * from './first';
        export * from './second';
        """,
    )

    found = _resolver(project).resolve_export(barrel, "shared")

    assert found is not None
    assert found[0] is first


def test_named_reexport_beats_earlier_wildcard(project: Project) -> None:
    project.create_source_file("/test/wild.ts", "export const shared = 1;")
    named = project.create_source_file("/test/named.ts", "export const shared = 2;")
    barrel = project.create_source_file(
        "/test/index.ts",
        """
        export * from './wild';
        export { shared } from './named';
        """,
    )

    found = _resolver(project).resolve_export(barrel, "shared")

    assert found is not None
    assert found[0] is named


def test_unresolvable_named_reexport_falls_through_to_wildcards(project: Project) -> None:
    wild = project.create_source_file("/test/wild.ts", "export const shared = 1;")
    barrel = project.create_source_file(
        "/test/index.ts",
        """
        export { shared } from './gone';
        export * from './wild';
        """,
    )

    found = _resolver(project).resolve_export(barrel, "shared")

    assert found is not None
    assert found[0] is wild


def test_deep_chain_resolves_to_terminal_declaration(project: Project) -> None:
    leaf = project.create_source_file("/test/c.ts", "export class Leaf {}")
    project.create_source_file("/test/b.ts", "export { Leaf as Middle } from './c';")
    top = project.create_source_file("/test/a.ts", "export * from './b';")

    found = _resolver(project).resolve_export(top, "Middle")

    assert found is not None
    source_file, entry = found
    assert source_file is leaf
    assert entry.is_terminal
    assert entry.name == "Leaf"


def test_self_reexport_cycle_returns_none(project: Project) -> None:
    barrel = project.create_source_file(
        "/test/index.ts",
        """
        export * from './index';
        export { ghost } from './index';
        """,
    )

    assert _resolver(project).resolve_export(barrel, "ghost") is None


def test_visited_file_is_not_reentered(project: Project) -> None:
    target = project.create_source_file("/test/a.ts", "export const value = 1;")

    assert _resolver(project).resolve_export(target, "value", frozenset({"/test/a.ts"})) is None


class _CountingModuleResolver(ModuleResolver):
    def __init__(self, project: Project) -> None:
        super().__init__(project)
        self.calls = 0

    def resolve(self, specifier, from_file):
        self.calls += 1
        return super().resolve(specifier, from_file)


def _layered_diamond(project: Project, layers: int) -> None:
    for layer in range(layers):
        if layer == layers - 1:
            body = "export const leaf = 1;"
        else:
            body = f"export * from './l{layer + 1}a';\nexport * from './l{layer + 1}b';"
        project.create_source_file(f"/test/l{layer}a.ts", body)
        project.create_source_file(f"/test/l{layer}b.ts", body)


def test_shared_sub_barrels_are_walked_once_per_name(project: Project) -> None:
    layers = 24
    _layered_diamond(project, layers)
    modules = _CountingModuleResolver(project)
    top = project.get_source_file("/test/l0a.ts")
    assert top is not None

    assert BarrelResolver(modules).resolve_export(top, "missing") is None
    assert modules.calls <= 4 * layers


def test_layered_diamond_still_finds_leaf(project: Project) -> None:
    _layered_diamond(project, 12)
    top = project.get_source_file("/test/l0a.ts")
    assert top is not None

    found = _resolver(project).resolve_export(top, "leaf")

    assert found is not None
    assert found[0].path == "/test/l11a.ts"


def test_miss_cut_short_by_cycle_is_not_remembered(project: Project) -> None:
    project.create_source_file("/test/a.ts", "export * from './b';\nexport * from './c';")
    b = project.create_source_file("/test/b.ts", "export * from './a';")
    c = project.create_source_file("/test/c.ts", "export const x = 1;")
    a = project.get_source_file("/test/a.ts")
    assert a is not None
    resolver = _resolver(project)

    from_a = resolver.resolve_export(a, "x")
    from_b = resolver.resolve_export(b, "x")

    assert from_a is not None and from_a[0] is c
    assert from_b is not None and from_b[0] is c


def test_clear_forgets_remembered_misses(project: Project) -> None:
    barrel = project.create_source_file("/test/index.ts", "export * from './late';")
    project.create_source_file("/test/late.ts", "export const other = 1;")
    resolver = _resolver(project)
    assert resolver.resolve_export(barrel, "value") is None

    project.create_source_file("/test/late.ts", "export const value = 1;", overwrite=True)
    assert resolver.resolve_export(barrel, "value") is None

    resolver.clear()
    found = resolver.resolve_export(barrel, "value")
    assert found is not None
    assert found[0].path == "/test/late.ts"
