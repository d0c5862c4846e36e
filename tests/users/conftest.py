"""
pytest fixtures for the users API suite
The app runs in-process over an in-memory collection; no database server is needed.
"""

import httpx
import pytest
import pytest_asyncio

from app import create_app
from services.user_store import UserStore
from fakes import FakeCollection


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def user_store(collection):
    return UserStore(collection)


@pytest.fixture
def app(user_store):
    """App with the store handle attached the way startup attaches it"""
    app = create_app()
    app.state.user_store = user_store
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def ann(client):
    """A stored active user"""
    response = await client.post(
        "/users",
        json={"name": "Ann", "email": "ann@x.com", "age": 30, "isActive": True},
    )
    assert response.status_code == 200
    return response.json()
