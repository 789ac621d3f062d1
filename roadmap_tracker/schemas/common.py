"""
Shared Pydantic building blocks for request and response schemas
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class Envelope(CamelModel, Generic[T]):
    """Standard response body: {success, message?, data?}"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class PaginatedEnvelope(CamelModel, Generic[T]):
    success: bool = True
    data: List[T]
    pagination: Pagination


class MessageResponse(CamelModel):
    success: bool = True
    message: str
