from pydantic import BaseModel, EmailStr, constr
from typing import Optional
from datetime import datetime
from leave_portal.models.user import Role
from leave_portal.schemas.user import UserOut


class UserRegister(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    email: EmailStr
    password: constr(min_length=6)
    department: constr(strip_whitespace=True, min_length=1)
    role: Role = Role.EMPLOYEE
    position: Optional[str] = None
    joiningDate: Optional[datetime] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: constr(min_length=1)


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut


class RoleUpdateResponse(BaseModel):
    message: str
    user: UserOut
