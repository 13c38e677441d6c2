from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _strip_required(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class BootstrapAdminRequest(BaseModel):
    email: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email", "full_name")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    # Length policy is checked by the handler so it can answer with its own message.
    password: str = Field(..., min_length=1)

    @field_validator("email", "full_name")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class UserPublic(BaseModel):
    user_id: int
    email: str
    full_name: str
    roles: List[str] = Field(default_factory=list)


class LoginResponse(BaseModel):
    token: str
    user: UserPublic


class OkResponse(BaseModel):
    ok: bool = True


class BootstrapAdminResponse(OkResponse):
    user_id: int


class ClientIn(BaseModel):
    external_client_key: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    dob: Optional[date] = None
    gender: Optional[str] = None
    housing_status: Optional[str] = None

    @field_validator("external_client_key", "first_name", "last_name")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("gender", "housing_status")
    @classmethod
    def strip_optional(cls, value: Optional[str]) -> Optional[str]:
        return _strip_optional(value)


class ClientCreated(BaseModel):
    client_id: int


class ClientUpdated(OkResponse):
    client_id: int


class AddServiceRequest(BaseModel):
    client_id: int = Field(..., gt=0)
    program_id: int = Field(..., gt=0)
    service_id: int = Field(..., gt=0)
    service_date: date
    duration_minutes: int = Field(..., gt=0)
    staff_id: Optional[int] = Field(default=None, gt=0)
    notes_ref: Optional[str] = None

    @field_validator("notes_ref")
    @classmethod
    def strip_optional(cls, value: Optional[str]) -> Optional[str]:
        return _strip_optional(value)


class AddServiceResponse(OkResponse):
    client_service_id: int
