# app/services/place_service.py
import logging
from typing import Any, Dict, Optional, Protocol, Tuple

from app.crud.crud_place import STATUS_ACTIVE, STATUS_ARCHIVED, PlaceStore, new_place_record
from app.schemas import place as place_schemas
from app.schemas.place import OwnerType

logger = logging.getLogger(__name__)

# --- Custom Exceptions ---
class PlaceServiceError(Exception):
    """Base class for place business-rule failures."""
    pass
class PlaceValidationError(PlaceServiceError):
    """Raised when a request is well-formed but not acceptable (e.g. no owner scope given)."""
    pass
class UnauthorizedError(PlaceServiceError):
    """Raised when the caller may not act on the requested user/group scope."""
    pass
class PlaceNotFoundError(PlaceServiceError):
    """Raised when a place is missing or archived."""
    pass
class InvalidPlaceOwnerError(PlaceServiceError):
    """Raised when a group-owned place is asked to be primary."""
    pass


class PlaceService(Protocol):
    """What the places router needs from its service collaborator."""

    async def get_places(
        self, user_id: Optional[str], group_id: Optional[str], authenticated_user_id: str
    ) -> place_schemas.PlacesResponse: ...

    async def create_place(
        self, place_in: place_schemas.PlaceCreate, authenticated_user_id: str
    ) -> place_schemas.PlaceItem: ...

    async def update_place(
        self,
        place_id: str,
        user_id: Optional[str],
        group_id: Optional[str],
        place_update: place_schemas.PlaceUpdate,
        authenticated_user_id: str,
    ) -> place_schemas.PlaceItem: ...

    async def delete_place(
        self, place_id: str, user_id: Optional[str], group_id: Optional[str], authenticated_user_id: str
    ) -> None: ...


def _to_item(record: Dict[str, Any]) -> place_schemas.PlaceItem:
    return place_schemas.PlaceItem(**record)


class DefaultPlaceService:
    """
    Place business rules on top of a PlaceStore.

    * Users may only see and change their own places.
    * Group places require group membership.
    * A user has at most one primary place; groups never have one.
    * Deleting archives the place, and archiving twice is not an error.
    """

    def __init__(self, store: PlaceStore):
        self.store = store

    async def get_places(self, user_id, group_id, authenticated_user_id):
        if user_id is None and group_id is None:
            raise PlaceValidationError("At least one of userId or groupId must be provided")

        user_places = []
        group_places = []

        if user_id is not None:
            if user_id != authenticated_user_id:
                raise UnauthorizedError("You can only view your own places")
            records = await self.store.find_places_by_owner(OwnerType.USER.value, user_id)
            user_places = [_to_item(r) for r in records if r["status"] == STATUS_ACTIVE]

        if group_id is not None:
            if not await self.store.is_user_member_of_group(group_id, authenticated_user_id):
                raise UnauthorizedError("You are not a member of this group")
            records = await self.store.find_places_by_owner(OwnerType.GROUP.value, group_id)
            group_places = [_to_item(r) for r in records if r["status"] == STATUS_ACTIVE]

        return place_schemas.PlacesResponse(user_places=user_places, group_places=group_places)

    async def create_place(self, place_in, authenticated_user_id):
        owner_id = place_in.owner.id
        owner_type = place_in.owner.type

        if owner_type == OwnerType.GROUP:
            if not await self.store.is_user_member_of_group(owner_id, authenticated_user_id):
                raise UnauthorizedError("You are not a member of this group")
            if place_in.is_primary:
                raise InvalidPlaceOwnerError("Groups cannot have primary places")
        else:
            if owner_id != authenticated_user_id:
                raise UnauthorizedError("You can only create places for yourself")

        if place_in.is_primary:
            await self._demote_primary_place(owner_id)

        record = new_place_record(
            owner_type=owner_type.value,
            owner_id=owner_id,
            created_by=authenticated_user_id,
            nickname=place_in.nickname,
            address=place_in.address.model_dump() if place_in.address else None,
            notes=place_in.notes,
            is_primary=place_in.is_primary,
        )
        saved = await self.store.save(record)
        logger.info(f"Created place {saved['place_id']} for {owner_type.value} {owner_id}")
        return _to_item(saved)

    async def update_place(self, place_id, user_id, group_id, place_update, authenticated_user_id):
        owner_type, owner_id = await self._resolve_scope(user_id, group_id, authenticated_user_id, "update")

        place = await self.store.find_by_owner_and_place_id(owner_type, owner_id, place_id)
        if place is None:
            raise PlaceNotFoundError(f"Place not found: {place_id}")
        if place["status"] == STATUS_ARCHIVED:
            raise PlaceNotFoundError(f"Place is archived: {place_id}")

        changes = place_update.model_dump(exclude_unset=True)
        new_primary = changes.pop("is_primary", None)

        if new_primary and owner_type == OwnerType.GROUP.value:
            raise InvalidPlaceOwnerError("Groups cannot have primary places")

        for field_name, value in changes.items():
            if value is not None:
                place[field_name] = value

        if new_primary is not None and owner_type == OwnerType.USER.value and new_primary != place["is_primary"]:
            if new_primary:
                await self._demote_primary_place(owner_id)
            place["is_primary"] = new_primary

        saved = await self.store.save(place)
        logger.info(f"Updated place {place_id} for {owner_type} {owner_id}")
        return _to_item(saved)

    async def delete_place(self, place_id, user_id, group_id, authenticated_user_id):
        owner_type, owner_id = await self._resolve_scope(user_id, group_id, authenticated_user_id, "delete")

        place = await self.store.find_by_owner_and_place_id(owner_type, owner_id, place_id)
        if place is None:
            raise PlaceNotFoundError(f"Place not found: {place_id}")

        # Soft delete; an archived place can be archived again
        place["status"] = STATUS_ARCHIVED
        place["is_primary"] = False
        await self.store.save(place)
        logger.info(f"Archived place {place_id} for {owner_type} {owner_id}")

    async def _resolve_scope(
        self, user_id: Optional[str], group_id: Optional[str], authenticated_user_id: str, action: str
    ) -> Tuple[str, str]:
        """Checks the userId/groupId scope of an update/delete and returns (owner_type, owner_id)."""
        if (user_id is None) == (group_id is None):
            raise PlaceValidationError("Exactly one of userId or groupId must be provided")
        if user_id is not None:
            if user_id != authenticated_user_id:
                raise UnauthorizedError(f"You can only {action} your own places")
            return OwnerType.USER.value, user_id
        if not await self.store.is_user_member_of_group(group_id, authenticated_user_id):
            raise UnauthorizedError("You are not a member of this group")
        return OwnerType.GROUP.value, group_id

    async def _demote_primary_place(self, user_id: str) -> None:
        existing = await self.store.find_primary_place_for_user(user_id)
        if existing:
            existing["is_primary"] = False
            await self.store.save(existing)
            logger.info(f"Unset primary flag for place {existing['place_id']}")
