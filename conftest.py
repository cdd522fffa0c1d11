from __future__ import annotations

import os

import django
import pytest
import requests_mock as requests_mock_lib


os.environ.setdefault("DJANGO_SECRET_KEY", "test-secret")
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "weatherlink.settings")

django.setup()


@pytest.fixture()
def requests_mock():
    with requests_mock_lib.Mocker() as mocker:
        yield mocker


@pytest.fixture()
def no_backoff(monkeypatch):
    """Skip the sleep between fetch retries."""
    delays = []
    monkeypatch.setattr("weatherlink.core.providers.base.time.sleep", delays.append)
    return delays
