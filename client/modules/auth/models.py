"""
Authentication module data models.

These models define the request bodies sent to the storefront API, the
responses parsed from it, and the session state exposed to UI code.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator

from shared.models import Role, UserRecord


class SessionStatus(str, Enum):
    """Derived lifecycle state of the session."""

    RESTORING = "restoring"            # Reading the persisted token
    VERIFYING = "verifying"            # Persisted token being confirmed by auth/me
    ANONYMOUS = "anonymous"            # No usable credential
    AUTHENTICATING = "authenticating"  # login/register in flight
    AUTHENTICATED = "authenticated"    # Token and user both resolved


class LoginRequest(BaseModel):
    """Credentials posted to auth/login. Both must be non-empty."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    def to_payload(self) -> dict:
        return self.model_dump()


class RegistrationData(BaseModel):
    """
    Payload posted to auth/register.

    Business fields are only meaningful for sellers; ``business_name`` and
    ``tax_id`` are required when registering one.
    """

    name: str = Field(..., min_length=1, description="Display name")
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, description="Account password")
    phone: str = Field(..., min_length=1, description="Phone number")
    address: str = Field(..., min_length=1, description="Street address")
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    role: Role = Field(default=Role.CUSTOMER, description="Requested role")

    # Seller-only
    business_name: Optional[str] = Field(None, alias="businessName")
    business_description: Optional[str] = Field(None, alias="businessDescription")
    tax_id: Optional[str] = Field(None, alias="taxId")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _seller_fields(self) -> "RegistrationData":
        if self.role is Role.SELLER:
            missing = [
                alias
                for alias, value in (("businessName", self.business_name), ("taxId", self.tax_id))
                if not value
            ]
            if missing:
                raise ValueError(f"Seller registration requires: {', '.join(missing)}")
        return self

    def to_payload(self) -> dict:
        """Request body in the API's field naming."""
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.role is not Role.SELLER:
            for key in ("businessName", "businessDescription", "taxId"):
                payload.pop(key, None)
        return payload


class ProfileUpdate(BaseModel):
    """Partial profile update sent to PUT profile. Unset fields are omitted."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None

    model_config = {"extra": "forbid"}

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class PasswordChange(BaseModel):
    """Body of PUT profile/password."""

    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword")

    model_config = {"populate_by_name": True}

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class AuthResponse(BaseModel):
    """Successful auth/login or auth/register response."""

    token: str = Field(..., min_length=1, description="Signed bearer token")
    user: UserRecord = Field(..., description="Authenticated account")


class SessionSnapshot(BaseModel):
    """
    Immutable view of the session published to subscribers.

    Every state change produces one, so callers can observe the optimistic
    restore phase separately from the verified one.
    """

    status: SessionStatus
    token: Optional[str] = None
    user: Optional[UserRecord] = None
    loading: bool = False
    error: Optional[str] = None
    is_authenticated: bool = False

    model_config = {"frozen": True}
