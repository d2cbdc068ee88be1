from typing import List, Optional
from pydantic import BaseModel

class ReviewAction(BaseModel):
    """Approve/reject body shared by every approval workflow"""
    note: Optional[str] = None

class BulkReviewRequest(BaseModel):
    ids: List[int]
    note: Optional[str] = None

class BulkFailure(BaseModel):
    id: int
    detail: str

class BulkReviewResponse(BaseModel):
    approved: List[int]
    failed: List[BulkFailure]
