from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

class UserBase(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

class UserCreate(UserBase):
    password: str = Field(..., min_length=6, max_length=72)
    # checked by the service so an unknown role reports as invalid_role
    role: str

    class Config:
        extra = "forbid"

class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=6, max_length=72)

    class Config:
        extra = "forbid"

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class ProviderProfileSummary(BaseModel):
    id: int
    business_name: Optional[str] = None
    bio: Optional[str] = None
    expertise: List[str] = []
    location: Optional[str] = None
    languages: List[str] = []
    years_experience: Optional[int] = None
    commission_rate: Decimal
    approval_state: str

    class Config:
        from_attributes = True

class User(UserBase):
    id: int
    role: str
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class UserDetail(User):
    provider_profile: Optional[ProviderProfileSummary] = None

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class AuthResponse(Token):
    user: UserDetail
