from pydantic import BaseModel, Field, constr
from typing import Optional
from datetime import date as calendar_date, datetime


class HolidayCreate(BaseModel):
    date: calendar_date
    name: constr(strip_whitespace=True, min_length=1)
    description: Optional[str] = None


class HolidayUpdate(BaseModel):
    date: Optional[calendar_date] = None
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    description: Optional[str] = None


class HolidayOut(BaseModel):
    id: str = Field(..., alias="_id")
    date: datetime
    name: str
    description: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    class Config:
        populate_by_name = True
