"""Root test configuration - keeps host MDBLOCKS_* settings out of the tests"""

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch, tmp_path):
    """Run each test from an empty directory with no MDBLOCKS_ env vars set."""
    for name in list(os.environ):
        if name.startswith("MDBLOCKS_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
