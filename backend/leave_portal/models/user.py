from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Any
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


class LeaveBalance(BaseModel):
    annual: int = Field(20, ge=0)
    sick: int = Field(10, ge=0)
    casual: int = Field(5, ge=0)


DEFAULT_LEAVE_BALANCE = LeaveBalance().model_dump()


class User(BaseModel):
    id: Optional[Any] = Field(None, alias="_id")
    name: str
    email: EmailStr
    hashed_password: str
    role: Role = Role.EMPLOYEE
    department: str
    position: Optional[str] = None
    joiningDate: Optional[datetime] = None
    leaveBalance: LeaveBalance = Field(default_factory=LeaveBalance)
    lastLogin: Optional[datetime] = None
    createdAt: datetime = Field(default_factory=datetime.utcnow)
    updatedAt: Optional[datetime] = None

    class Config:
        populate_by_name = True
        use_enum_values = True
        arbitrary_types_allowed = True

    def to_document(self) -> dict:
        """Shape used for ``insert_one``; Mongo assigns ``_id``."""
        return self.model_dump(exclude={"id"})
