from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _clear_azuread_env(monkeypatch):
    """Keep unit tests deterministic by ignoring AZUREAD_* settings of the host."""
    for name in list(os.environ):
        if name.startswith("AZUREAD_"):
            monkeypatch.delenv(name, raising=False)
    yield
