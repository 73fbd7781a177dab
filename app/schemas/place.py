# app/schemas/place.py
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# --- Enumerations ---

class OwnerType(str, Enum):
    USER = "USER"
    GROUP = "GROUP"


class PlaceStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


# --- Building blocks ---

class Address(BaseModel):
    """Postal address of a place. Every field is optional at the API layer."""
    label: Optional[str] = Field(None, max_length=100, description="Short label, e.g. 'Home'")
    street_address: Optional[str] = Field(None, alias="streetAddress", max_length=300)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, alias="postalCode", max_length=20)
    country: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class PlaceOwner(BaseModel):
    """Who owns the place: a user or a group."""
    id: str = Field(..., min_length=1, description="User ID or group ID of the owner")
    type: OwnerType = Field(..., description="USER or GROUP")


# --- Requests ---

class PlaceCreate(BaseModel):
    """POST /places body."""
    owner: PlaceOwner
    nickname: str = Field(..., max_length=100, description="Display name of the place")
    address: Optional[Address] = None
    notes: Optional[str] = Field(None, max_length=1000, description="Access codes, parking instructions, ...")
    is_primary: bool = Field(
        False,
        validation_alias=AliasChoices("isPrimary", "primary", "is_primary"),
        serialization_alias="isPrimary",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("nickname")
    @classmethod
    def nickname_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("nickname must not be blank")
        return v


class PlaceUpdate(BaseModel):
    """PUT /places/{placeId} body (all optional, only supplied fields are applied)."""
    nickname: Optional[str] = Field(None, max_length=100)
    address: Optional[Address] = None
    notes: Optional[str] = Field(None, max_length=1000)
    is_primary: Optional[bool] = Field(
        None,
        validation_alias=AliasChoices("isPrimary", "primary", "is_primary"),
        serialization_alias="isPrimary",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("nickname")
    @classmethod
    def nickname_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("nickname must not be blank")
        return v


# --- Responses ---

class PlaceItem(BaseModel):
    """A saved place as returned by the API."""
    place_id: str = Field(..., alias="placeId")
    nickname: str
    address: Optional[Address] = None
    notes: Optional[str] = None
    is_primary: bool = Field(False, alias="primary")
    status: PlaceStatus = PlaceStatus.ACTIVE
    owner_type: OwnerType = Field(..., alias="ownerType")
    created_by: Optional[str] = Field(None, alias="createdBy")
    created_at: Optional[int] = Field(None, alias="createdAt", description="Epoch seconds")
    updated_at: Optional[int] = Field(None, alias="updatedAt", description="Epoch seconds")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class PlacesResponse(BaseModel):
    """GET /places response; both lists are always present."""
    user_places: List[PlaceItem] = Field(default_factory=list, alias="userPlaces")
    group_places: List[PlaceItem] = Field(default_factory=list, alias="groupPlaces")

    model_config = ConfigDict(populate_by_name=True)
