from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase (wire) and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------------
# Requests (INPUT)
# -------------------------

class UserCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, description="E.164 or local format")
    password: str
    city: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    sublocality: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: str


class AdminLoginRequest(CamelModel):
    admin_id: str
    password: str


class DepartmentLoginRequest(CamelModel):
    department_id: str
    password: str
