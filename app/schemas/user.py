# backend/app/schemas/user.py

from datetime import datetime
from pydantic import BaseModel, EmailStr
from typing import Literal, Optional

Role = Literal["admin", "student", "teacher_analyst", "teacher_respondent"]

class UserBase(BaseModel):
    name: str
    email: EmailStr
    role: Role
    anonymous: bool = False

class User(UserBase):
    id: str

class UserInDB(User):
    city: Optional[str] = None
    state: Optional[str] = None
    institution: Optional[str] = None
    deleted: bool = False
    created_at: Optional[datetime] = None

class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    anonymous: Optional[bool] = None
    # checked by the service so an unknown role is reported as a 400
    role: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    institution: Optional[str] = None
