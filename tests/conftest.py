"""Shared fixtures: a fake CRM wired into the app through dependency overrides."""

from __future__ import annotations

import os

# Settings are read at import time; pin the ones tests depend on before importing the app
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["DROP_EMPTY_PERMISSIONS"] = "0"
os.environ["STRICT_ID_VALIDATION"] = "0"
os.environ["MAX_RECORD_IDS"] = "100"

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from app.core.crm.session import get_crm_provider
from app.main import app
from tests.helpers.crm_fakes import FakeProvider, FakeSession


@pytest.fixture
def crm_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def crm_provider(crm_session: FakeSession) -> FakeProvider:
    return FakeProvider(crm_session)


@pytest.fixture
def client(crm_provider: FakeProvider) -> Iterator[TestClient]:
    app.dependency_overrides[get_crm_provider] = lambda: crm_provider
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
