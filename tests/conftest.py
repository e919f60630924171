import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'previewhost' and tests/ importable for helpers.
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from previewhost.core.config import clear_all_caches
from previewhost.core.logs import reset_stdlib_logging_for_tests
from previewhost.core.serve_folder import ServeFolderConfig, ServeFolderManager
from helpers.ports import find_free_port_range


@pytest.fixture(autouse=True)
def _reset_previewhost_state(monkeypatch):
    """Fresh config cache, no leaked PREVIEWHOST_* overrides, no installed log handler."""
    for key in list(os.environ.keys()):
        if key.startswith("PREVIEWHOST_"):
            monkeypatch.delenv(key, raising=False)
    clear_all_caches()
    yield
    clear_all_caches()
    reset_stdlib_logging_for_tests()


@pytest.fixture
def isolated_project_env(tmp_path, monkeypatch) -> Path:
    """Empty project root used as the working directory for the test."""
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def site_root(tmp_path) -> Path:
    """A small built site with the asset kinds previews serve."""
    root = tmp_path / "site"
    (root / "img").mkdir(parents=True)
    (root / "levels").mkdir()
    (root / "index.html").write_text("<html><body>preview</body></html>", encoding="utf-8")
    (root / "game.js").write_text("console.log('tick');", encoding="utf-8")
    (root / "style.css").write_text("body { margin: 0; }", encoding="utf-8")
    (root / "img" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nfake")
    (root / "levels" / "index.html").write_text("<h1>levels</h1>", encoding="utf-8")
    (root / "levels" / "level 1.json").write_text('{"id": 1}', encoding="utf-8")
    (root / "assets.pak").write_bytes(b"\x00\x01\x02")
    (tmp_path / "secret.txt").write_text("outside the root", encoding="utf-8")
    return root


@pytest.fixture
def port_range() -> tuple[int, int]:
    return find_free_port_range(width=16)


@pytest.fixture
def serve_config(port_range) -> ServeFolderConfig:
    return ServeFolderConfig(min_port=port_range[0], max_port=port_range[1], keep_alive_timeout_seconds=2.0)


@pytest.fixture
def manager(serve_config):
    m = ServeFolderManager(serve_config)
    yield m
    m.close()
