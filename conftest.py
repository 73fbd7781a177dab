"""
conftest.py  – Test fixtures for the Places backend.

Key points
----------
* ENVIRONMENT=test is set before the app is imported, so Firebase and Sentry
  stay off and settings are not cached.
* httpx.AsyncClient over ASGITransport, with dependency overrides for the
  caller identity and the PlaceService collaborator.
* Each service-level test gets a fresh in-memory PlaceStore.
"""
import inspect
import os
from typing import Callable
from unittest.mock import MagicMock

os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from main import app as fastapi_app
from app.api import deps
from app.crud.crud_place import PlaceStore
from app.services.place_service import DefaultPlaceService

from tests.utils import TEST_USER_ID


# --------------------------------------------------------------------------
# httpx.AsyncClient against the ASGI app
# --------------------------------------------------------------------------
@pytest_asyncio.fixture(scope="function")
async def client():
    # Unhandled errors must come back as 500 responses, not be re-raised into the test
    kwargs = {"app": fastapi_app, "raise_app_exceptions": False}
    if "lifespan" in inspect.signature(ASGITransport).parameters:
        kwargs["lifespan"] = "auto"
    transport = ASGITransport(**kwargs)

    async with AsyncClient(transport=transport,
                           base_url="http://testserver") as ac:
        yield ac

    fastapi_app.dependency_overrides.clear()


# --------------------------------------------------------------------------
# PlaceService collaborator
# --------------------------------------------------------------------------
@pytest.fixture(scope="function")
def mock_place_service():
    """
    Replaces the PlaceService with a mock whose async methods are AsyncMocks.
    Tests set return_value / side_effect and assert on the recorded calls.
    """
    service = MagicMock(spec=DefaultPlaceService)

    fastapi_app.dependency_overrides[deps.get_place_service] = lambda: service
    yield service
    fastapi_app.dependency_overrides.pop(deps.get_place_service, None)


@pytest.fixture(scope="function")
def place_store() -> PlaceStore:
    return PlaceStore()


@pytest.fixture(scope="function")
def place_service(place_store: PlaceStore) -> DefaultPlaceService:
    return DefaultPlaceService(place_store)


@pytest.fixture(scope="function")
def live_place_service(place_service: DefaultPlaceService):
    """Wires a fresh DefaultPlaceService (not a mock) behind the API."""
    fastapi_app.dependency_overrides[deps.get_place_service] = lambda: place_service
    yield place_service
    fastapi_app.dependency_overrides.pop(deps.get_place_service, None)


# --------------------------------------------------------------------------
# Auth-mocking helpers
# --------------------------------------------------------------------------
@pytest.fixture(scope="function")
def mock_auth():
    """Authenticates every request as TEST_USER_ID."""
    async def override() -> str:
        return TEST_USER_ID

    fastapi_app.dependency_overrides[deps.get_current_user_id] = override
    yield TEST_USER_ID
    fastapi_app.dependency_overrides.pop(deps.get_current_user_id, None)


@pytest.fixture
def make_auth_header() -> Callable[..., dict]:
    """
    Tests call:  headers = make_auth_header(user_id)
    Undotted tokens are accepted as the uid by get_verified_token_data.
    """
    def _make(user_id: str, token_type: str = "Bearer") -> dict[str, str]:
        return {"Authorization": f"{token_type} {user_id}"}

    return _make


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Ensure SlowAPI’s in-memory storage is empty for every test."""
    limiter = getattr(fastapi_app.state, "limiter", None)
    if limiter:
        limiter.reset()
    yield
    if limiter:
        limiter.reset()
