from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

StaffRole = Literal["admin", "editor", "writer"]
AssignableRole = Literal["editor", "writer"]


class ProfileCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    role: StaffRole

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Name is required")
        return cleaned

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    role: Optional[AssignableRole] = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def require_changes(self) -> "ProfileUpdate":
        if self.name is None and self.role is None:
            raise ValueError("Nothing to update")
        return self


class ProfileResponse(BaseModel):
    id: str
    name: str
    email: str
    role: StaffRole
    created_at: datetime


class ProfileEnvelope(BaseModel):
    success: bool = True
    user: ProfileResponse


class ProfileListEnvelope(BaseModel):
    success: bool = True
    users: list[ProfileResponse]
