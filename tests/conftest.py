import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'contentpack' and tests/ importable for 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from helpers.cache_utils import reset_contentpack_caches
from helpers.content import folder_repository


@pytest.fixture(autouse=True)
def _reset_global_caches() -> None:
    """Ensure config caches and logging handlers are fresh for each test."""
    reset_contentpack_caches()
    yield
    reset_contentpack_caches()


@pytest.fixture
def isolated_project_env(tmp_path, monkeypatch):
    """Isolated project root with an empty ``.contentpack/config`` directory.

    Every ``CONTENTPACK_*`` variable of the developer shell is cleared so
    configuration tests are deterministic.
    """
    for key in list(os.environ):
        if key.startswith("CONTENTPACK_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CONTENTPACK_PROJECT_ROOT", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".contentpack" / "config").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def memory_repository():
    """Repository with ``/content`` (folder) and ``/content/site`` (unstructured)."""
    return folder_repository()
