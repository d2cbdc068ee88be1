import math
from typing import Any, Dict, Generic, List, Sequence, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int

class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    meta: PageMeta


def build_page(data: Sequence[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
    """Wrap a page of rows in the list envelope"""
    return {
        "data": list(data),
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if limit else 0,
        },
    }
