from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

# Schema for user authentication credentials
class UserLogin(BaseModel):
    email: str
    password: str

# Fields accepted when creating a user; presence rules are enforced by the directory
class UserCreate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    company: Optional[str] = None

# Partial update; only fields explicitly set (model_fields_set) are applied
class UserPatch(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    company: Optional[str] = None

    def supplied(self) -> dict:
        return {k: getattr(self, k) for k in self.model_fields_set}

# Output projection of a user joined with its role; never exposes the credential
class UserOut(BaseModel):
    id: int
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    profile_picture_url: Optional[str] = None
    role_id: Optional[int] = None
    role_name: Optional[str] = None
    role_description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class UserResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: UserOut

class UserListResponse(BaseModel):
    success: bool = True
    data: List[UserOut]

# Session bootstrap returned by /login
class Session(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
    modules: List[str]

class SessionResponse(BaseModel):
    success: bool = True
    data: Session

# Schema for JWT payload contents
class TokenData(BaseModel):
    email: Optional[str] = None
