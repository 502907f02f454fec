"""
Shared DTO Base Classes
=======================

Wire field names are camelCase; Python attributes stay snake_case.
"""

import math

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every request/response DTO."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    """Pagination metadata for list endpoints."""
    total: int
    page: int
    pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, pages=math.ceil(total / limit) if limit else 0)
