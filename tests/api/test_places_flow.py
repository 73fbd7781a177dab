# tests/api/test_places_flow.py
"""End-to-end flows through the router with the real DefaultPlaceService behind it."""
import pytest
from fastapi import status
from httpx import AsyncClient

from app.core.config import settings
from tests.utils import OTHER_USER_ID, TEST_GROUP_ID, TEST_USER_ID, address_payload

API_V1_PLACES = f"{settings.API_V1_STR}/places"

pytestmark = pytest.mark.asyncio


async def _create(client: AsyncClient, headers: dict, **overrides) -> dict:
    payload = {
        "owner": {"id": TEST_USER_ID, "type": "USER"},
        "nickname": "Home",
        "address": address_payload(),
        "notes": "Ring twice",
        "isPrimary": True,
    }
    payload.update(overrides)
    r = await client.post(API_V1_PLACES, json=payload, headers=headers)
    assert r.status_code == status.HTTP_201_CREATED, r.text
    return r.json()


async def test_create_list_update_delete(client: AsyncClient, live_place_service, make_auth_header):
    headers = make_auth_header(TEST_USER_ID)

    created = await _create(client, headers)
    place_id = created["placeId"]
    assert created["status"] == "ACTIVE"

    r = await client.get(API_V1_PLACES, params={"userId": TEST_USER_ID}, headers=headers)
    assert r.status_code == status.HTTP_200_OK
    assert [p["placeId"] for p in r.json()["userPlaces"]] == [place_id]
    assert r.json()["groupPlaces"] == []

    r = await client.put(f"{API_V1_PLACES}/{place_id}", params={"userId": TEST_USER_ID},
                         json={"nickname": "Home 2"}, headers=headers)
    assert r.status_code == status.HTTP_200_OK
    updated = r.json()
    assert updated["nickname"] == "Home 2"
    assert updated["address"] == created["address"]
    assert updated["notes"] == "Ring twice"
    assert updated["primary"] is True

    for _ in range(2):
        r = await client.delete(f"{API_V1_PLACES}/{place_id}", params={"userId": TEST_USER_ID}, headers=headers)
        assert r.status_code == status.HTTP_200_OK

    r = await client.get(API_V1_PLACES, params={"userId": TEST_USER_ID}, headers=headers)
    assert r.json()["userPlaces"] == []

    r = await client.put(f"{API_V1_PLACES}/{place_id}", params={"userId": TEST_USER_ID},
                         json={"nickname": "Ghost"}, headers=headers)
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["error"] == "PLACE_NOT_FOUND"


async def test_group_primary_place_is_invalid_owner(client: AsyncClient, live_place_service, make_auth_header):
    await live_place_service.store.add_group_member(TEST_GROUP_ID, TEST_USER_ID)

    r = await client.post(API_V1_PLACES, json={
        "owner": {"id": TEST_GROUP_ID, "type": "GROUP"},
        "nickname": "Group HQ",
        "isPrimary": True,
    }, headers=make_auth_header(TEST_USER_ID))

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["error"] == "INVALID_PLACE_OWNER"


async def test_viewing_someone_elses_places_is_forbidden(client: AsyncClient, live_place_service, make_auth_header):
    r = await client.get(API_V1_PLACES, params={"userId": OTHER_USER_ID}, headers=make_auth_header(TEST_USER_ID))

    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.json()["error"] == "UNAUTHORIZED"


async def test_update_with_both_scopes_is_validation_error(client: AsyncClient, live_place_service, make_auth_header):
    headers = make_auth_header(TEST_USER_ID)
    created = await _create(client, headers)

    r = await client.put(f"{API_V1_PLACES}/{created['placeId']}",
                         params={"userId": TEST_USER_ID, "groupId": TEST_GROUP_ID},
                         json={"nickname": "x"}, headers=headers)

    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["error"] == "VALIDATION_ERROR"
    assert "Exactly one" in r.json()["message"]
