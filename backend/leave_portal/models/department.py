from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime


class Department(BaseModel):
    id: Optional[Any] = Field(None, alias="_id")
    name: str
    description: Optional[str] = None
    createdAt: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True

    def to_document(self) -> dict:
        return self.model_dump(exclude={"id"})
