"""Shared fixtures.

Snapshots and restores the environment variables the settings layer reads,
so a test that sets UAA credentials or CF_HOME cannot leak into the next one.
"""

from __future__ import annotations

import os

import pytest

from tests.fakes import FakeCloudController, FakeUaa

_SETTINGS_ENV_VARS = [
    "CF_HOME",
    "UAA_SERVERURL",
    "UAA_CLIENTID",
    "UAA_CLIENTSECRET",
    "UAA_ORIGIN",
    "CF_MIGRATION_TIMEOUT",
    "CF_MIGRATION_RETRIES",
    "CF_MIGRATION_SKIP_SSL_VALIDATION",
]


@pytest.fixture(autouse=True)
def _restore_env():
    """Snapshot settings env vars before each test and restore after."""
    snapshot = {var: os.environ[var] for var in _SETTINGS_ENV_VARS if var in os.environ}
    for var in _SETTINGS_ENV_VARS:
        os.environ.pop(var, None)

    yield

    for var in _SETTINGS_ENV_VARS:
        if var in snapshot:
            os.environ[var] = snapshot[var]
        else:
            os.environ.pop(var, None)


@pytest.fixture
def cc():
    return FakeCloudController()


@pytest.fixture
def uaa():
    return FakeUaa()
