"""Shared fixtures for API tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from greenpulse.main import create_app


@pytest.fixture
def app(engine):
    test_app = create_app(api_key="test-key")
    test_app.state.engine = engine
    return test_app


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers():
    return {"X-API-Key": "test-key"}
