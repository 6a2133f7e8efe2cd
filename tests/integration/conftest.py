from __future__ import annotations

from pathlib import Path

import pytest

from helpers.io_utils import write_kubeconfig
from helpers.kubeconfigs import FIXTURE_YAML
from kce.core.editor import KubeconfigEditor


@pytest.fixture()
def editor() -> KubeconfigEditor:
    return KubeconfigEditor()


@pytest.fixture()
def fixture_path(work_dir: Path) -> Path:
    return write_kubeconfig(work_dir, "config", FIXTURE_YAML)


@pytest.fixture()
def loaded(editor: KubeconfigEditor, fixture_path: Path) -> KubeconfigEditor:
    editor.load(fixture_path)
    return editor
