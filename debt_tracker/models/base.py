from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, ConfigDict


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what pymongo hands back on reads."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DocumentModel(BaseModel):
    """
    Base for every stored entity.

    `id` is the string form of the Mongo `_id`; it is never written back into
    the document body.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        from_attributes=True
    )

    id: Optional[str] = Field(default=None, validation_alias="_id", serialization_alias="_id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]):
        data = dict(doc)
        data["_id"] = str(data["_id"])
        return cls(**data)

    def to_document(self) -> dict:
        return self.model_dump(exclude={"id"})
