from pydantic import BaseModel, Field
from typing import Optional

class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    duration_min: int = Field(..., gt=0)  # Duration in minutes
    image_url: str = ""

class ServiceResponse(BaseModel):
    id: str
    salon_id: str
    name: str
    description: str = ""
    price: float
    duration_min: int
    image_url: str = ""
