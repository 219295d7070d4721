import math
from dataclasses import dataclass

from fastapi import Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int


@dataclass
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def describe(self, total_count: int) -> Pagination:
        return Pagination(
            current_page=self.page,
            total_pages=math.ceil(total_count / self.limit) if total_count else 0,
            total_count=total_count,
            limit=self.limit,
        )


def page_params(default_limit: int = 20):
    """Builds a dependency reading ``page``/``limit`` query parameters."""

    def _dependency(
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=default_limit, ge=1, le=100),
    ) -> PageParams:
        return PageParams(page=page, limit=limit)

    return _dependency
