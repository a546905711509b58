from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from modules.documents.models.user import UserRole

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str
    user_id: int
    user_name: str
    user_role: str

class UserCreate(BaseModel):
    full_name: str
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole
    department: Optional[str] = None
    subject: Optional[str] = None

class UserResponse(BaseModel):
    id: int
    full_name: str
    email: Optional[str] = None
    role: UserRole
    department: Optional[str] = None
    subject: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}

class PasswordResetRequest(BaseModel):
    email: EmailStr

class PasswordResetConfirm(BaseModel):
    email: EmailStr
    code: str
    new_password: str = Field(min_length=6)
