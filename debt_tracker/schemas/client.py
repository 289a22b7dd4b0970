from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: str
    address: Optional[str] = None
    email: Optional[EmailStr] = None


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[EmailStr] = None


class ClientResponse(BaseModel):
    id: str
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    user_id: Optional[str] = None
    archived: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
