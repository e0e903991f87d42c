"""Tests for cargo_hdk.config -- crate root discovery, project config, precedence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cargo_hdk.config import (
    find_crate_root,
    get_data_dir,
    load_project_config,
    resolve_config,
)
from cargo_hdk.exceptions import ConfigError, InvalidUsageError
from cargo_hdk.models import BuildMode, HdkConfig


def _write_json(path: Path, data) -> None:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Crate root
# ---------------------------------------------------------------------------


class TestFindCrateRoot:
    def test_finds_manifest_in_start_dir(self, crate: Path) -> None:
        assert find_crate_root() == crate.resolve()

    def test_walks_up_from_subdirectory(self, crate: Path) -> None:
        nested = crate / "hdk" / "src"
        assert find_crate_root(nested) == crate.resolve()

    def test_nearest_manifest_wins(self, crate: Path) -> None:
        member = crate / "members" / "inner"
        member.mkdir(parents=True)
        (member / "Cargo.toml").write_text("[package]\n")
        assert find_crate_root(member) == member.resolve()

    def test_directory_named_cargo_toml_is_ignored(self, crate: Path) -> None:
        sub = crate / "sub"
        (sub / "Cargo.toml").mkdir(parents=True)
        assert find_crate_root(sub) == crate.resolve()

    def test_missing_manifest(self, isolated_env: Path) -> None:
        lonely = isolated_env / "nowhere"
        lonely.mkdir()
        with pytest.raises(ConfigError, match="Cargo.toml"):
            find_crate_root(lonely)


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_defaults_when_absent(self, crate: Path) -> None:
        config = load_project_config(crate)
        assert config == HdkConfig()
        assert config.hdk_path == "hdk"
        assert config.cmake_args == []

    def test_loads_values(self, crate: Path) -> None:
        _write_json(crate / ".cargo-hdk.json", {"hdk_path": "plugin", "cmake_args": ["-G", "Ninja"]})
        config = load_project_config(crate)
        assert config.hdk_path == "plugin"
        assert config.cmake_args == ["-G", "Ninja"]

    def test_invalid_json(self, crate: Path) -> None:
        (crate / ".cargo-hdk.json").write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config(crate)

    def test_unknown_key_rejected(self, crate: Path) -> None:
        _write_json(crate / ".cargo-hdk.json", {"hdk_dir": "plugin"})
        with pytest.raises(ConfigError):
            load_project_config(crate)

    def test_wrong_type_rejected(self, crate: Path) -> None:
        _write_json(crate / ".cargo-hdk.json", {"cmake_args": "-G Ninja"})
        with pytest.raises(ConfigError):
            load_project_config(crate)


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, crate: Path) -> None:
        config, layout = resolve_config()
        assert layout.crate_root == crate.resolve()
        assert layout.plugin_dir == (crate / "hdk").resolve()
        assert layout.mode is BuildMode.DEBUG
        assert layout.build_dir == (crate / "hdk" / "build_debug").resolve()
        assert config.cmake_args == []

    def test_release(self, crate: Path) -> None:
        _, layout = resolve_config(release=True)
        assert layout.mode is BuildMode.RELEASE
        assert layout.build_dir == (crate / "hdk" / "build").resolve()

    def test_project_config_hdk_path(self, crate: Path) -> None:
        (crate / "plugin").mkdir()
        _write_json(crate / ".cargo-hdk.json", {"hdk_path": "plugin"})
        _, layout = resolve_config()
        assert layout.plugin_dir == (crate / "plugin").resolve()

    def test_env_beats_project_config(self, crate: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (crate / "plugin").mkdir()
        (crate / "other").mkdir()
        _write_json(crate / ".cargo-hdk.json", {"hdk_path": "plugin"})
        monkeypatch.setenv("CARGO_HDK_PATH", "other")
        _, layout = resolve_config()
        assert layout.plugin_dir == (crate / "other").resolve()

    def test_cli_beats_env(self, crate: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (crate / "other").mkdir()
        monkeypatch.setenv("CARGO_HDK_PATH", "other")
        _, layout = resolve_config(cli_hdk_path="./hdk")
        assert layout.plugin_dir == (crate / "hdk").resolve()

    def test_env_cmake_args(self, crate: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(crate / ".cargo-hdk.json", {"cmake_args": ["-G", "Unix Makefiles"]})
        monkeypatch.setenv("CARGO_HDK_CMAKE_ARGS", "[-G Ninja]")
        config, _ = resolve_config()
        assert config.cmake_args == ["-G", "Ninja"]

    def test_env_cmake_args_malformed(self, crate: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CARGO_HDK_CMAKE_ARGS", "-G Ninja")
        with pytest.raises(InvalidUsageError, match="CARGO_HDK_CMAKE_ARGS"):
            resolve_config()

    def test_missing_plugin_dir(self, crate: Path) -> None:
        with pytest.raises(ConfigError, match="plugin directory not found"):
            resolve_config(cli_hdk_path="does-not-exist")

    def test_resolves_from_subdirectory(self, crate: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(crate / "src")
        _, layout = resolve_config()
        assert layout.crate_root == crate.resolve()


# ---------------------------------------------------------------------------
# Data dir
# ---------------------------------------------------------------------------


class TestDataDir:
    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cargo_hdk.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
        result = get_data_dir()
        assert result == tmp_path / "xdg" / "cargo-hdk"
        assert result.is_dir()

    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cargo_hdk.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_data_dir() == tmp_path / ".local" / "share" / "cargo-hdk"

    def test_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cargo_hdk.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_data_dir() == tmp_path / ".cargo-hdk"
