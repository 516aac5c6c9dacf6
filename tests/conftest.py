"""Pytest fixtures for mtmedia tests."""

import hashlib
import logging
from pathlib import Path

import pytest


def write(path: Path, data: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def make_mod(container: Path, name: str, files: dict) -> Path:
    """Create a mod directory (init.lua + media files) under container."""
    mod = container / name
    mod.mkdir(parents=True, exist_ok=True)
    (mod / "init.lua").write_text("-- test mod\n")
    for rel, data in files.items():
        write(mod / rel, data)
    return mod


def sha1(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


@pytest.fixture(autouse=True)
def _quiet_progress(monkeypatch):
    """No progress bars in test output; reset package logger after CLI runs."""
    monkeypatch.setenv("MTMEDIA_TQDM", "1")
    yield
    logger = logging.getLogger("mtmedia")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True


@pytest.fixture
def game_dir(tmp_path: Path) -> Path:
    """Game with one mod: stone.png = AA, dirt.png = BB."""
    game = tmp_path / "game"
    make_mod(game / "mods", "default", {
        "textures/stone.png": b"AA",
        "textures/dirt.png": b"BB",
    })
    return game


@pytest.fixture
def world_dir(tmp_path: Path) -> Path:
    """World overriding stone.png with CC."""
    world = tmp_path / "world"
    world.mkdir()
    (world / "world.mt").write_text("gameid = test\nbackend = sqlite3\n")
    write(world / "textures" / "stone.png", b"CC")
    return world


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"
