from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime


class Holiday(BaseModel):
    id: Optional[Any] = Field(None, alias="_id")
    date: datetime
    name: str
    description: Optional[str] = None
    createdAt: datetime = Field(default_factory=datetime.utcnow)
    updatedAt: Optional[datetime] = None

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True

    def to_document(self) -> dict:
        return self.model_dump(exclude={"id"})
