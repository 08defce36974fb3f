from typing import Generic, List, Sequence, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

class PaginatedResponse(BaseModel, Generic[T]):
    page_index: int
    page_size: int
    count: int
    data: List[T]

def paginate(items: Sequence[T], page_index: int, page_size: int) -> "PaginatedResponse[T]":
    start = (page_index - 1) * page_size
    return PaginatedResponse(
        page_index=page_index,
        page_size=page_size,
        count=len(items),
        data=list(items[start:start + page_size]),
    )
