from typing import List
from pydantic import BaseModel, Field


class BulkIdsRequest(BaseModel):
    """Ids to process, in order."""
    ids: List[str] = Field(..., min_length=1)


class BulkItemError(BaseModel):
    item_id: str
    message: str


class BulkOperationResult(BaseModel):
    """
    Outcome of a bulk operation.

    Items are processed independently; `errors` follows input order.
    """
    success_count: int = 0
    failure_count: int = 0
    errors: List[BulkItemError] = []

    def record_success(self) -> None:
        self.success_count += 1

    def record_failure(self, item_id: str, message: str) -> None:
        self.failure_count += 1
        self.errors.append(BulkItemError(item_id=item_id, message=message))
