from typing import Optional
from pydantic import Field

from debt_tracker.models.base import DocumentModel


class Client(DocumentModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = None
    phone: str
    address: Optional[str] = None
    user_id: Optional[str] = None
    archived: bool = False
