"""Tests for auo.config -- directory resolution and atomic writes."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from auo.config import atomic_write, get_config_dir


class TestGetConfigDir:
    def test_default_is_dot_directory_in_home(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("AUO_CONFIG_DIR", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".auo"

    def test_not_created(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AUO_CONFIG_DIR", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert not get_config_dir().exists()

    def test_environment_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUO_CONFIG_DIR", str(tmp_path / "custom"))
        assert get_config_dir() == tmp_path / "custom"

    def test_empty_override_ignored(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUO_CONFIG_DIR", "")
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".auo"


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        atomic_write(target, '{"a": 1}\n')
        assert target.read_text(encoding="utf-8") == '{"a": 1}\n'

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "config.json"
        atomic_write(target, "{}")
        assert target.is_file()

    def test_overwrites(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        atomic_write(target, "first")
        atomic_write(target, "second")
        assert target.read_text(encoding="utf-8") == "second"

    def test_permissions(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        atomic_write(target, "{}")
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_failure_leaves_original_and_no_temp_file(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        atomic_write(target, "original")

        with patch("auo.config.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError, match="boom"):
                atomic_write(target, "new")

        assert target.read_text(encoding="utf-8") == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["config.json"]

    def test_custom_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "shared.json"
        atomic_write(target, "{}", mode=0o644)
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o644
