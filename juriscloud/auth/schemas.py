from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from juriscloud.models import ProfileStatus

class UserCreate(BaseModel):
    email: EmailStr
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class AuthUser(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    status: ProfileStatus
    email_confirmed_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_profile(cls, row: dict) -> "AuthUser":
        # The auth user id is the profile's user_id, which owns every row
        return cls(**{**row, "id": row["user_id"]})

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email

class AuthSession(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: AuthUser

class AuthResponse(BaseModel):
    user: Optional[AuthUser] = None
    session: Optional[AuthSession] = None

class Token(BaseModel):
    access_token: str
    token_type: str
