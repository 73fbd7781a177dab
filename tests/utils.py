# tests/utils.py
import time
from typing import Any, Dict, Optional

from app.schemas import place as place_schemas

TEST_USER_ID = "12345678-1234-1234-1234-123456789012"
OTHER_USER_ID = "87654321-4321-4321-4321-210987654321"
TEST_GROUP_ID = "87654321-4321-4321-4321-210987654321"
TEST_PLACE_ID = "abcdef12-abcd-abcd-abcd-abcdefabcdef"
MISSING_PLACE_ID = "00000000-0000-0000-0000-000000000000"


def address_payload(label: str = "Home", street: str = "123 Main St") -> Dict[str, Any]:
    return {
        "label": label,
        "streetAddress": street,
        "city": "Springfield",
        "state": "IL",
        "postalCode": "62701",
        "country": "USA",
    }


def make_place_item(
    place_id: str = TEST_PLACE_ID,
    nickname: str = "Home",
    owner_type: str = "USER",
    created_by: str = TEST_USER_ID,
    primary: bool = False,
    notes: Optional[str] = None,
    address: Optional[Dict[str, Any]] = None,
) -> place_schemas.PlaceItem:
    """Builds the PlaceItem a mocked service hands back to the router."""
    now = int(time.time())
    return place_schemas.PlaceItem(
        placeId=place_id,
        nickname=nickname,
        address=address,
        notes=notes,
        primary=primary,
        ownerType=owner_type,
        createdBy=created_by,
        createdAt=now,
        updatedAt=now,
    )
