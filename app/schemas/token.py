# app/schemas/token.py
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

# Schema representing the relevant data extracted from a verified Firebase ID token
class FirebaseTokenData(BaseModel):
    uid: str = Field(..., description="Firebase User ID; used as the caller's user ID")
    email: Optional[EmailStr] = Field(None, description="User's email address (if available in token)")
    name: Optional[str] = Field(None, description="User's display name (if available in token)")

    # Allow extra fields from the decoded token dict without causing validation errors
    model_config = {"extra": "ignore"}
