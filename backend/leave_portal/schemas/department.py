from pydantic import BaseModel, Field, constr
from typing import Optional
from datetime import datetime


class DepartmentCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    description: Optional[str] = None


class DepartmentOut(BaseModel):
    id: str = Field(..., alias="_id")
    name: str
    description: Optional[str] = None
    createdAt: Optional[datetime] = None

    class Config:
        populate_by_name = True
