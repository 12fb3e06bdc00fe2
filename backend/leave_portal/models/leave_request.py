from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime
from enum import Enum


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    CASUAL = "casual"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveRequest(BaseModel):
    id: Optional[Any] = Field(None, alias="_id")
    employee: Any  # ObjectId of the requesting user
    department: Optional[str] = None  # snapshot of the employee's department at submission
    leaveType: LeaveType
    startDate: datetime
    endDate: datetime
    totalDays: int = Field(..., ge=1)
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    manager: Optional[Any] = None
    managerNote: Optional[str] = None
    decidedAt: Optional[datetime] = None
    createdAt: datetime = Field(default_factory=datetime.utcnow)
    updatedAt: Optional[datetime] = None

    class Config:
        populate_by_name = True
        use_enum_values = True
        arbitrary_types_allowed = True

    def to_document(self) -> dict:
        return self.model_dump(exclude={"id"})
