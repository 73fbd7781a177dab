# app/crud/crud_place.py
"""
Process-local store for saved places and group memberships.

Places are kept per owner (``USER``/``GROUP`` + owner id) in insertion order.
Records are plain dicts with snake_case keys, the same shape the API schemas
read from, and are copied on the way in and out so callers never share state
with the store.
"""
import logging
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

OwnerKey = Tuple[str, str]

STATUS_ACTIVE = "ACTIVE"
STATUS_ARCHIVED = "ARCHIVED"


def _now() -> int:
    return int(time.time())


def new_place_record(
    owner_type: str,
    owner_id: str,
    created_by: str,
    nickname: str,
    address: Optional[Dict[str, Any]] = None,
    notes: Optional[str] = None,
    is_primary: bool = False,
) -> Dict[str, Any]:
    """Builds an unsaved place record with a fresh place ID."""
    return {
        "place_id": str(uuid.uuid4()),
        "owner_type": owner_type,
        "owner_id": owner_id,
        "created_by": created_by,
        "nickname": nickname,
        "address": address,
        "notes": notes,
        "is_primary": is_primary,
        "status": STATUS_ACTIVE,
        "created_at": None,
        "updated_at": None,
    }


class PlaceStore:
    """In-memory place repository used as the default backend."""

    def __init__(self, group_members: Optional[Dict[str, Iterable[str]]] = None) -> None:
        self._places: Dict[OwnerKey, Dict[str, Dict[str, Any]]] = {}
        self._group_members: Dict[str, Set[str]] = {
            group_id: set(members) for group_id, members in (group_members or {}).items()
        }

    # --- Places ---

    async def find_places_by_owner(self, owner_type: str, owner_id: str) -> List[Dict[str, Any]]:
        """Returns every place (active and archived) for an owner, oldest first."""
        places = self._places.get((owner_type, owner_id), {})
        logger.debug(f"Found {len(places)} places for {owner_type} {owner_id}")
        return [dict(p) for p in places.values()]

    async def find_by_owner_and_place_id(self, owner_type: str, owner_id: str, place_id: str) -> Optional[Dict[str, Any]]:
        place = self._places.get((owner_type, owner_id), {}).get(place_id)
        return dict(place) if place else None

    async def find_primary_place_for_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        for place in self._places.get(("USER", user_id), {}).values():
            if place["is_primary"] and place["status"] == STATUS_ACTIVE:
                return dict(place)
        return None

    async def save(self, place: Dict[str, Any]) -> Dict[str, Any]:
        """Inserts or replaces a place record, stamping created_at/updated_at."""
        record = dict(place)
        now = _now()
        if record.get("created_at") is None:
            record["created_at"] = now
        record["updated_at"] = now
        owner_places = self._places.setdefault((record["owner_type"], record["owner_id"]), {})
        owner_places[record["place_id"]] = record
        logger.debug(f"Saved place {record['place_id']} for {record['owner_type']} {record['owner_id']}")
        return dict(record)

    # --- Group membership ---

    async def is_user_member_of_group(self, group_id: str, user_id: str) -> bool:
        return user_id in self._group_members.get(group_id, set())

    async def add_group_member(self, group_id: str, user_id: str) -> None:
        self._group_members.setdefault(group_id, set()).add(user_id)
        logger.info(f"User {user_id} added to group {group_id}")
