"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Storefront account roles. The set is closed."""

    ADMIN = "admin"
    SELLER = "seller"
    CUSTOMER = "customer"

    @classmethod
    def parse(cls, value: Any) -> Optional["Role"]:
        """
        Map a raw role value onto the enum.

        Unrecognised values yield None so callers treat them as
        unauthorized instead of inventing a fourth role.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class UserRecord(BaseModel):
    """
    A storefront account as returned by the REST API.

    Login and register responses carry ``id`` while ``auth/me`` and the
    profile endpoints return the raw document with ``_id`` and
    ``createdAt``; both shapes are accepted.
    """

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"), description="Account ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: Optional[Role] = Field(None, description="Account role, None when unrecognised")

    # Profile fields
    phone: Optional[str] = Field(None, description="Phone number")
    address: Optional[str] = Field(None, description="Street address")
    city: Optional[str] = Field(None, description="City")
    state: Optional[str] = Field(None, description="State / province")
    zipcode: Optional[str] = Field(None, description="Postal code")

    created_at: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
        description="Account creation time",
    )
    is_approved: Optional[bool] = Field(
        None,
        validation_alias=AliasChoices("isApproved", "is_approved"),
        serialization_alias="isApproved",
        description="Seller approval flag",
    )

    model_config = {
        "frozen": True,
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, value: Any) -> Optional[Role]:
        role = Role.parse(value)
        if role is None and value not in (None, ""):
            logger.warning(f"Unrecognised role {value!r}, treating account as unauthorized")
        return role

    @field_validator("phone", "zipcode", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Optional[str]:
        # Some documents store numbers for these
        if value is None:
            return None
        return str(value)
