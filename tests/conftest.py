"""Shared test fixtures for auo.

Provides an isolated configuration directory, a store bound to it, and
sample v1/v2 documents as plain dicts. Every test gets a fresh global
OutputManager.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from auo.output import reset_output
from auo.store import ConfigStore


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager caches sys.stdout/sys.stderr at creation time; CliRunner and
    capsys swap those streams, so a stale manager would write to a closed file.
    """
    yield
    reset_output()


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point AUO_CONFIG_DIR at a temporary directory and return it."""
    config_dir = tmp_path / "auo"
    monkeypatch.setenv("AUO_CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path / "home"))
    return config_dir


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    """A ConfigStore writing to ``tmp_path/config``."""
    return ConfigStore(config_dir=tmp_path / "config")


def _v1_document(current_index: int = 0) -> dict[str, Any]:
    return {
        "providers": [
            {
                "name": "default",
                "baseUrl": "",
                "authToken": "",
                "description": "Default configuration",
            },
            {
                "name": "work",
                "baseUrl": "https://llm.example.com",
                "authToken": "sk-work",
                "description": "Company gateway",
            },
        ],
        "currentIndex": current_index,
    }


def _v2_document(current_index: int = 0) -> dict[str, Any]:
    return {
        "version": "v2",
        "providers": [
            {
                "name": "default",
                "description": "",
                "env": {"ANTHROPIC_AUTH_TOKEN": ""},
            },
            {
                "name": "work",
                "description": "Company gateway",
                "env": {
                    "ANTHROPIC_BASE_URL": "https://llm.example.com",
                    "ANTHROPIC_AUTH_TOKEN": "sk-work",
                    "ANTHROPIC_MODEL": "claude-sonnet-4",
                },
            },
        ],
        "currentIndex": current_index,
    }


@pytest.fixture
def v1_doc() -> dict[str, Any]:
    """Legacy document: ``default`` (empty) and ``work``, current index 1."""
    return _v1_document(current_index=1)


@pytest.fixture
def v2_doc() -> dict[str, Any]:
    """Current document: ``default`` and ``work`` (all keys set), current index 1."""
    return _v2_document(current_index=1)
