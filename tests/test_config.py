"""Tests for originmap.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from originmap.config import (
    DEFAULT_EXTENSION_MAP,
    DEFAULT_SOURCE_EXTENSIONS,
    ConfigError,
    OriginMapConfig,
    load_config,
    load_tsconfig,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, OriginMapConfig)
    assert config.root == tmp_path.resolve()
    assert config.resolver.source_extensions == list(DEFAULT_SOURCE_EXTENSIONS)
    assert config.resolver.extension_map == DEFAULT_EXTENSION_MAP
    assert config.resolver.external_packages is True
    assert config.resolver.load_from_disk is False
    assert config.compiler.base_url is None
    assert config.compiler.paths == {}
    assert config.exclude_paths == []


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".originmap.yml"
    config_file.write_text(
        """
resolver:
  source_extensions: [ts, ".tsx"]
  extension_map:
    ".js": ".ts"
  external_packages: false
  load_from_disk: "yes"
compiler:
  base_url: "src"
  paths:
    "@app/*": ["app/*"]
    "@env": "config/env"
exclude_paths:
  - "dist/"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.resolver.source_extensions == [".ts", ".tsx"]
    assert config.resolver.extension_map == {".js": ".ts"}
    assert config.resolver.external_packages is False
    assert config.resolver.load_from_disk is True
    assert config.compiler.base_url == (tmp_path / "src").resolve()
    assert config.compiler.paths == {"@app/*": ["app/*"], "@env": ["config/env"]}
    assert config.exclude_paths == ["dist/"]


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / ".originmap.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".originmap.yml").write_text("resolver: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_tsconfig_comments_and_trailing_commas(tmp_path: Path) -> None:
    tsconfig = tmp_path / "tsconfig.json"
    tsconfig.write_text(
        """
{
  // path aliases
  "compilerOptions": {
    /* resolved from the project root */
    "baseUrl": ".",
    "paths": {
      "@/*": ["./src/*"],
      "~docs": ["https://example.com/docs"],
    },
  },
}
""",
        encoding="utf-8",
    )

    options = load_tsconfig(tsconfig)

    assert options.base_url == tmp_path.resolve()
    assert options.paths == {"@/*": ["./src/*"], "~docs": ["https://example.com/docs"]}


def test_tsconfig_extends_is_followed(tmp_path: Path) -> None:
    (tmp_path / "tsconfig.base.json").write_text(
        '{"compilerOptions": {"baseUrl": "./packages", "paths": {"@base/*": ["base/*"]}}}',
        encoding="utf-8",
    )
    app = tmp_path / "app"
    app.mkdir()
    (app / "tsconfig.json").write_text('{"extends": "../tsconfig.base"}', encoding="utf-8")

    options = load_tsconfig(app / "tsconfig.json")

    assert options.base_url == (tmp_path / "packages").resolve()
    assert options.paths == {"@base/*": ["base/*"]}


def test_tsconfig_extends_cycle_terminates(tmp_path: Path) -> None:
    (tmp_path / "a.json").write_text('{"extends": "./b.json"}', encoding="utf-8")
    (tmp_path / "b.json").write_text(
        '{"extends": "./a.json", "compilerOptions": {"paths": {"x": ["y"]}}}',
        encoding="utf-8",
    )

    options = load_tsconfig(tmp_path / "a.json")

    assert options.paths == {"x": ["y"]}


def test_yaml_compiler_options_override_tsconfig(tmp_path: Path) -> None:
    (tmp_path / "tsconfig.json").write_text(
        '{"compilerOptions": {"paths": {"@a/*": ["a/*"], "@b/*": ["b/*"]}}}',
        encoding="utf-8",
    )
    (tmp_path / ".originmap.yml").write_text(
        'compiler:\n  paths:\n    "@b/*": ["override/*"]\n',
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.compiler.paths == {"@a/*": ["a/*"], "@b/*": ["override/*"]}
    assert config.compiler.base_url is None
    assert config.compiler.paths_base == tmp_path.resolve()


def test_malformed_tsconfig_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / "tsconfig.json").write_text("{ nope", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_tsconfig_paths_without_base_url_keep_base_url_unset(tmp_path: Path) -> None:
    (tmp_path / "tsconfig.base.json").write_text(
        '{"compilerOptions": {"paths": {"@app/*": ["src/*"]}}}',
        encoding="utf-8",
    )
    app = tmp_path / "app"
    app.mkdir()
    (app / "tsconfig.json").write_text('{"extends": "../tsconfig.base.json"}', encoding="utf-8")

    options = load_tsconfig(app / "tsconfig.json")

    assert options.base_url is None
    assert options.paths_base == tmp_path.resolve()
    assert options.alias_base(app) == tmp_path.resolve()
