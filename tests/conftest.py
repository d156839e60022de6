"""Pytest fixtures for syncdiff tests."""

import pytest

from syncdiff.models import IGNORE_AGGREGATED_ROLES_ENV_VAR, OPTIONS_FILE_ENV_VAR


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep diff options in the caller's environment from leaking into tests."""
    monkeypatch.delenv(IGNORE_AGGREGATED_ROLES_ENV_VAR, raising=False)
    monkeypatch.delenv(OPTIONS_FILE_ENV_VAR, raising=False)
