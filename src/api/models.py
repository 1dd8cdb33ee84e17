"""Pydantic models for API responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domain.model.record import Page, Record


class RecordResponse(BaseModel):
    """Response model for a single record."""
    message: str
    data: dict[str, Any] = Field(..., description="Record with _id, fields, createdAt, updatedAt")

    @classmethod
    def of(cls, message: str, record: Record) -> 'RecordResponse':
        return cls(message=message, data=record.to_dict())


class RecordListResponse(BaseModel):
    """Response model for a page of records."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    data: list[dict[str, Any]]
    page: int = Field(..., description="Current page (1-based)")
    limit: int = Field(..., description="Page size after clamping to [1, 100]")
    total: int = Field(..., description="Number of records matching the search")
    total_pages: int = Field(..., alias="totalPages", description="ceil(total / limit), 0 when empty")

    @classmethod
    def of(cls, message: str, page: Page) -> 'RecordListResponse':
        return cls(
            message=message,
            data=[record.to_dict() for record in page.items],
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
        )
