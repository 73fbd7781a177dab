# app/api/deps.py
import logging

from fastapi import HTTPException, Depends, status, Request

from app.core.config import settings
from app.crud.crud_place import PlaceStore
from app.schemas.token import FirebaseTokenData
from app.services.place_service import DefaultPlaceService, PlaceService

# Firebase Admin SDK (initialized in main.py)
from firebase_admin import auth as firebase_auth
from firebase_admin._auth_utils import InvalidIdTokenError

logger = logging.getLogger(__name__)

UNAUTH_TEXT = "Could not validate credentials"
STUB_TOKEN_ENVIRONMENTS = ("development", "test")

InvalidTokenError = InvalidIdTokenError

# --- Service Dependency ---
# One store/service per process; tests swap it out through app.dependency_overrides.
place_store = PlaceStore(group_members=settings.PLACE_GROUP_MEMBERS)
place_service = DefaultPlaceService(place_store)

def get_place_service() -> PlaceService:
    """FastAPI dependency that provides the PlaceService collaborator."""
    return place_service

# --- Authentication Dependencies ---

def _unauthenticated(detail: str = UNAUTH_TEXT) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_verified_token_data(request: Request) -> FirebaseTokenData:
    auth_header: str | None = request.headers.get("Authorization")

    # Header must exist
    if not auth_header:
        raise _unauthenticated()

    try:
        scheme, token = auth_header.split(" ", 1)
    except ValueError:
        raise _unauthenticated()

    if scheme.lower() != "bearer" or not token:
        raise _unauthenticated()

    # Undotted stub tokens stand in for the uid outside deployed environments only
    if "." not in token and settings.ENVIRONMENT in STUB_TOKEN_ENVIRONMENTS:
        return FirebaseTokenData(uid=token, email=None)

    try:
        decoded = await firebase_verify_token(token)
    except InvalidTokenError:
        raise _unauthenticated("Invalid Firebase token")

    return decoded


async def get_current_user_id(
    token_data: FirebaseTokenData = Depends(get_verified_token_data)
) -> str:
    """
    Dependency that extracts the caller's user ID from the verified token.
    This is the single identity seam used by the places router.
    """
    if not token_data.uid or not token_data.uid.strip():
        raise _unauthenticated("No authenticated user")
    return token_data.uid

# ------------------------------------------------------------------
# Helper: verify a Firebase ID-token and return our Pydantic model
# ------------------------------------------------------------------
async def firebase_verify_token(token: str) -> FirebaseTokenData:
    """
    Verifies a Firebase ID token and converts the decoded claims into our
    FirebaseTokenData schema.  Raises InvalidTokenError on any failure so the
    caller can respond with 401.
    """
    try:
        claims = firebase_auth.verify_id_token(token)
    except Exception as exc:          # all errors → InvalidTokenError
        raise InvalidTokenError(str(exc)) from exc

    return FirebaseTokenData(
        uid=claims.get("uid") or claims.get("user_id"),
        email=claims.get("email"),
        name=claims.get("name"),
    )
