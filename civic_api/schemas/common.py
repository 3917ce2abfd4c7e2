"""Response envelopes and shared schema plumbing."""
from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(CamelModel, Generic[DataT]):
    success: bool = True
    data: DataT
    message: str | None = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)


class PaginatedResponse(CamelModel, Generic[DataT]):
    success: bool = True
    data: list[DataT]
    pagination: Pagination
    message: str | None = None


__all__ = ["CamelModel", "ApiResponse", "MessageResponse", "Pagination", "PaginatedResponse"]
