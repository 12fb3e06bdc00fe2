from pydantic import BaseModel, Field, constr, field_validator
from typing import Optional, Literal
from datetime import datetime
from leave_portal.models.leave_request import LeaveType
from leave_portal.schemas.user import UserRef

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class LeaveCreate(BaseModel):
    startDate: str = Field(..., pattern=DATE_PATTERN)  # YYYY-MM-DD
    endDate: str = Field(..., pattern=DATE_PATTERN)    # YYYY-MM-DD
    leaveType: LeaveType
    reason: constr(strip_whitespace=True, min_length=1)
    totalDays: int = Field(..., ge=1)

    @field_validator("startDate", "endDate")
    @classmethod
    def must_be_calendar_date(cls, value: str) -> str:
        datetime.strptime(value, "%Y-%m-%d")
        return value


class LeaveDecision(BaseModel):
    status: Literal["approved", "rejected"]
    managerNote: Optional[str] = None


class LeaveOut(BaseModel):
    id: str = Field(..., alias="_id")
    employee: Optional[UserRef] = None
    department: Optional[str] = None
    leaveType: str
    startDate: datetime
    endDate: datetime
    totalDays: int
    reason: str
    status: str
    manager: Optional[UserRef] = None
    managerNote: Optional[str] = None
    decidedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    class Config:
        populate_by_name = True
