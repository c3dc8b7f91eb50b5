from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, StrictBool, field_validator

from app.core.permissions import Role
from app.schemas.common import CamelModel, Pagination, normalize_email


class UserOut(CamelModel):
    id: UUID
    email: str
    name: str
    role: Role
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=2, max_length=255)
    role: Role

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v) if isinstance(v, str) else v

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UserActivateRequest(CamelModel):
    is_active: StrictBool


class UserListResponse(CamelModel):
    users: list[UserOut]
    pagination: Pagination


class UserDetailResponse(CamelModel):
    user: UserOut
