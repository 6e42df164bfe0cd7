from __future__ import annotations

import logging
from pathlib import Path

from chordcrack.logging_config import configure_logging, resolve_level
from chordcrack.paths import get_profiles_dir, get_telemetry_dir, get_user_data_root


def test_data_root_honors_override_and_env(tmp_path: Path, monkeypatch):
    explicit = get_user_data_root(tmp_path / "explicit")
    assert explicit == tmp_path / "explicit"
    assert explicit.is_dir()

    monkeypatch.setenv("CC_DATA_DIR", str(tmp_path / "from-env"))
    assert get_user_data_root() == tmp_path / "from-env"


def test_platform_default_when_unset(monkeypatch):
    monkeypatch.delenv("CC_DATA_DIR", raising=False)
    root = get_user_data_root(create=False)
    assert "chordcrack" in str(root).lower()


def test_subdirectories(tmp_path: Path):
    assert get_profiles_dir(tmp_path) == tmp_path / "profiles"
    assert (tmp_path / "profiles").is_dir()
    tel = get_telemetry_dir(tmp_path, create=False)
    assert tel == tmp_path / "telemetry"
    assert not tel.exists()


def test_configure_logging_applies_the_given_level():
    root = logging.getLogger()
    noisy = logging.getLogger("urllib3")
    saved_handlers, saved_level, saved_noisy = root.handlers[:], root.level, noisy.level
    try:
        root.handlers.clear()
        assert configure_logging("debug") == logging.DEBUG
        assert root.level == logging.DEBUG
        assert noisy.level >= logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        noisy.setLevel(saved_noisy)


def test_resolve_level_falls_back_to_default():
    assert resolve_level("warning") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level(None, default=logging.DEBUG) == logging.DEBUG
    assert resolve_level("bogus") == logging.INFO
