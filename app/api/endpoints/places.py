# app/api/endpoints/places.py
import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, Response, status

from app.api import deps
from app.api.errors import (INTERNAL_ERROR, INVALID_PLACE_OWNER, PLACE_NOT_FOUND,
                            UNAUTHORIZED, VALIDATION_ERROR, PlaceAPIError)
from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas import place as place_schemas
from app.services.place_service import (InvalidPlaceOwnerError, PlaceNotFoundError,
                                        PlaceService, PlaceServiceError,
                                        PlaceValidationError, UnauthorizedError)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/places", tags=["Places"])

ID_PATTERN = re.compile(r"[0-9a-f-]{36}")

# Service exception → (HTTP status, error tag)
_SERVICE_ERRORS = {
    PlaceValidationError: (status.HTTP_400_BAD_REQUEST, VALIDATION_ERROR),
    InvalidPlaceOwnerError: (status.HTTP_400_BAD_REQUEST, INVALID_PLACE_OWNER),
    UnauthorizedError: (status.HTTP_403_FORBIDDEN, UNAUTHORIZED),
    PlaceNotFoundError: (status.HTTP_404_NOT_FOUND, PLACE_NOT_FOUND),
}


def validate_id_format(value: Optional[str], field_name: str) -> None:
    """Rejects a supplied ID that is not a 36-char lowercase hex/dash identifier."""
    if value is not None and not ID_PATTERN.fullmatch(value):
        raise PlaceAPIError(status.HTTP_400_BAD_REQUEST, VALIDATION_ERROR, f"Invalid {field_name} format")


def _to_api_error(e: PlaceServiceError) -> PlaceAPIError:
    for exc_type, (status_code, error) in _SERVICE_ERRORS.items():
        if isinstance(e, exc_type):
            return PlaceAPIError(status_code, error, str(e))
    return PlaceAPIError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "An unexpected error occurred")


@router.get("", response_model=place_schemas.PlacesResponse)
@limiter.limit(settings.PLACES_READ_RATE_LIMIT)
async def get_places(
    request: Request, # For limiter state
    user_id: Optional[str] = Query(None, alias="userId", description="List this user's places"),
    group_id: Optional[str] = Query(None, alias="groupId", description="List this group's places"),
    current_user_id: str = Depends(deps.get_current_user_id),
    service: PlaceService = Depends(deps.get_place_service),
):
    """
    Get saved places for a user and/or a group.
    Either or both of `userId` and `groupId` may be given; each list is empty
    when its scope was not requested.
    """
    logger.info(f"Getting places for userId={user_id}, groupId={group_id}")
    validate_id_format(user_id, "user ID")
    validate_id_format(group_id, "group ID")

    try:
        response = await service.get_places(user_id, group_id, current_user_id)
    except PlaceServiceError as e:
        logger.warning(f"Get places rejected for user {current_user_id}: {e}")
        raise _to_api_error(e) from e
    except Exception as e:
        logger.error(f"Unexpected error getting places for userId={user_id}, groupId={group_id}: {e}", exc_info=True)
        raise PlaceAPIError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "An unexpected error occurred")

    logger.info(f"Retrieved {len(response.user_places) + len(response.group_places)} places "
                f"(user: {len(response.user_places)}, group: {len(response.group_places)})")
    return response


@router.post("", response_model=place_schemas.PlaceItem, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.PLACES_WRITE_RATE_LIMIT)
async def create_place(
    request: Request, # For limiter state
    place_in: place_schemas.PlaceCreate,
    current_user_id: str = Depends(deps.get_current_user_id),
    service: PlaceService = Depends(deps.get_place_service),
):
    """Create a saved place owned by the caller or by one of the caller's groups."""
    logger.info(f"Creating place '{place_in.nickname}' for {place_in.owner.type.value} {place_in.owner.id}")

    try:
        created = await service.create_place(place_in, current_user_id)
    except PlaceServiceError as e:
        logger.warning(f"Create place rejected for user {current_user_id}: {e}")
        raise _to_api_error(e) from e
    except Exception as e:
        logger.error(f"Unexpected error creating place '{place_in.nickname}': {e}", exc_info=True)
        raise PlaceAPIError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "An unexpected error occurred")

    logger.info(f"Successfully created place {created.place_id} for {created.owner_type.value} {created.created_by}")
    return created


@router.put("/{place_id}", response_model=place_schemas.PlaceItem)
@limiter.limit(settings.PLACES_WRITE_RATE_LIMIT)
async def update_place(
    request: Request, # For limiter state
    place_update: place_schemas.PlaceUpdate,
    place_id: str = Path(..., description="ID of the place to update"),
    user_id: Optional[str] = Query(None, alias="userId", description="Owner user (mutually exclusive with groupId)"),
    group_id: Optional[str] = Query(None, alias="groupId", description="Owner group (mutually exclusive with userId)"),
    current_user_id: str = Depends(deps.get_current_user_id),
    service: PlaceService = Depends(deps.get_place_service),
):
    """
    Partially update a place. Only the fields present in the body are changed.
    """
    logger.info(f"Updating place {place_id} for userId={user_id}, groupId={group_id}")
    validate_id_format(place_id, "place ID")
    validate_id_format(user_id, "user ID")
    validate_id_format(group_id, "group ID")

    try:
        updated = await service.update_place(place_id, user_id, group_id, place_update, current_user_id)
    except PlaceServiceError as e:
        logger.warning(f"Update of place {place_id} rejected: {e}")
        raise _to_api_error(e) from e
    except Exception as e:
        logger.error(f"Unexpected error updating place {place_id}: {e}", exc_info=True)
        raise PlaceAPIError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "An unexpected error occurred")

    logger.info(f"Successfully updated place {place_id} for {updated.owner_type.value} {updated.created_by}")
    return updated


@router.delete("/{place_id}", status_code=status.HTTP_200_OK)
@limiter.limit(settings.PLACES_WRITE_RATE_LIMIT)
async def delete_place(
    request: Request, # For limiter state
    place_id: str = Path(..., description="ID of the place to archive"),
    user_id: Optional[str] = Query(None, alias="userId", description="Owner user (mutually exclusive with groupId)"),
    group_id: Optional[str] = Query(None, alias="groupId", description="Owner group (mutually exclusive with userId)"),
    current_user_id: str = Depends(deps.get_current_user_id),
    service: PlaceService = Depends(deps.get_place_service),
):
    """
    Archive a place. Idempotent: archiving an already archived place returns 200 as well.
    """
    logger.info(f"Deleting place {place_id} for userId={user_id}, groupId={group_id}")
    validate_id_format(place_id, "place ID")
    validate_id_format(user_id, "user ID")
    validate_id_format(group_id, "group ID")

    try:
        await service.delete_place(place_id, user_id, group_id, current_user_id)
    except PlaceServiceError as e:
        logger.warning(f"Delete of place {place_id} rejected: {e}")
        raise _to_api_error(e) from e
    except Exception as e:
        logger.error(f"Unexpected error deleting place {place_id}: {e}", exc_info=True)
        raise PlaceAPIError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "An unexpected error occurred")

    logger.info(f"Successfully deleted place {place_id}")
    return Response(status_code=status.HTTP_200_OK)
