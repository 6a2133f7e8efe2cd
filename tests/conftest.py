import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'kce' and tests/ importable for 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from helpers.cache_utils import reset_kce_caches  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    """Point every storage location and the user overlay at ``tmp_path``.

    External validation is off by default so no test depends on kubectl.
    """
    storage_root = tmp_path / "kce-storage"
    user_config_dir = tmp_path / "kce-config"
    monkeypatch.setenv("KCE_paths__storage_root", str(storage_root))
    monkeypatch.setenv("KCE_paths__user_config_dir", str(user_config_dir))
    monkeypatch.setenv("KCE_paths__default_kubeconfig", str(tmp_path / "home" / ".kube" / "config"))
    monkeypatch.setenv("KCE_validation__external__enabled", "false")
    monkeypatch.delenv("KCE_logging__enabled", raising=False)
    reset_kce_caches()
    yield storage_root
    reset_kce_caches()


@pytest.fixture
def storage_root(isolated_storage) -> Path:
    return isolated_storage


@pytest.fixture
def work_dir(tmp_path) -> Path:
    """Directory for kubeconfig files under test."""
    d = tmp_path / "work"
    d.mkdir()
    return d
