from pydantic import BaseModel, EmailStr, Field, constr
from typing import Optional
from datetime import datetime
from leave_portal.models.user import Role, LeaveBalance


class UserCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    email: EmailStr
    password: constr(min_length=6)
    role: Role = Role.EMPLOYEE
    department: constr(strip_whitespace=True, min_length=1)
    position: Optional[str] = None
    joiningDate: Optional[datetime] = None
    leaveBalance: Optional[LeaveBalance] = None


class UserUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    email: Optional[EmailStr] = None
    password: Optional[constr(min_length=6)] = None
    role: Optional[Role] = None
    department: Optional[constr(strip_whitespace=True, min_length=1)] = None
    position: Optional[str] = None
    joiningDate: Optional[datetime] = None
    leaveBalance: Optional[LeaveBalance] = None


class RoleUpdate(BaseModel):
    role: Role


class UserOut(BaseModel):
    id: str = Field(..., alias="_id")
    name: str
    email: str
    role: str
    department: Optional[str] = None
    position: Optional[str] = None
    joiningDate: Optional[datetime] = None
    leaveBalance: Optional[LeaveBalance] = None
    lastLogin: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    class Config:
        populate_by_name = True


class UserRef(BaseModel):
    """The ``{_id, name, email}`` projection embedded in leave responses."""
    id: str = Field(..., alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None

    class Config:
        populate_by_name = True
