from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserCreate(CamelModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class UserLogin(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class UserSummary(CamelModel):
    id: int
    full_name: str
    email: EmailStr


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserSummary


# Password/otp fields are never part of the profile
class UserProfile(CamelModel):
    id: int
    full_name: str
    email: EmailStr
    user_image: Optional[str] = None
    language: Optional[List[str]] = None
    documents: List[int] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("documents", mode="before")
    @classmethod
    def document_ids(cls, v):
        return [d if isinstance(d, int) else d.id for d in (v or [])]


class UserProfileResponse(BaseModel):
    user: UserProfile


class UserUpdateResponse(BaseModel):
    message: str
    user: UserProfile


class MessageResponse(BaseModel):
    message: str


class ChangePasswordRequest(CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None


class SendOtpRequest(BaseModel):
    email: Optional[EmailStr] = None


class ForgotPasswordRequest(CamelModel):
    email: Optional[EmailStr] = None
    otp: Optional[str] = None
    new_password: Optional[str] = None


class UserUpdate(CamelModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    language: Optional[List[str]] = None
