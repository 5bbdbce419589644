import os
import sys
from pathlib import Path

import pytest

# Ensure repository root is on sys.path so `import devsync...` works locally
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _isolated_config_env(monkeypatch, tmp_path):
    """Keep tests away from the user's real config file and ~/.ssh."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("DEVSYNC_CONFIG", raising=False)
    yield


@pytest.fixture
def workspace_dir(tmp_path):
    """An existing directory usable as a workspace root (canonical, trailing slash)."""
    d = tmp_path / "ws"
    d.mkdir()
    return os.path.realpath(str(d)) + os.sep
