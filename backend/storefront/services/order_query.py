"""Order listing: filter, sort and pagination over the orders collection."""

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.models.order import OrderStatus
from storefront.models.request import Pagination
from storefront.services.access import Caller, scope_user_id
from storefront.utils.helpers import escape_search

MAX_PAGE_SIZE = 100


class SortField(str, Enum):
    """Fields a listing can be sorted by."""

    CREATED_AT = "createdAt"
    ORDER_NUMBER = "orderNumber"
    TOTAL = "pricing.total"
    STATUS = "status"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class OrderListParams(BaseModel):
    """Listing query parameters."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=MAX_PAGE_SIZE)
    status: Optional[OrderStatus] = None
    search: Optional[str] = Field(None, max_length=100)
    dateFrom: Optional[datetime] = None
    dateTo: Optional[datetime] = None
    sortBy: SortField = SortField.CREATED_AT
    sortOrder: SortOrder = SortOrder.DESC
    userId: Optional[str] = Field(None, description="Admin only: restrict to one account")

    @field_validator("dateFrom", "dateTo")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @field_validator("search")
    @classmethod
    def blank_search_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_date_range(self) -> "OrderListParams":
        if self.dateFrom and self.dateTo and self.dateFrom > self.dateTo:
            raise ValueError("dateFrom must not be after dateTo")
        return self

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def build_order_filter(params: OrderListParams, caller: Caller) -> dict[str, Any]:
    """Build the MongoDB filter for a listing.

    Non-admin callers are always restricted to their own orders, whatever
    filters they pass.
    """
    filters: dict[str, Any] = {}

    user_id = scope_user_id(caller, params.userId)
    if user_id is not None:
        filters["user"] = user_id

    if params.status:
        filters["status"] = OrderStatus(params.status).value

    if params.search:
        pattern = escape_search(params.search)
        filters["$or"] = [
            {"orderNumber": {"$regex": pattern, "$options": "i"}},
            {"customer.email": {"$regex": pattern, "$options": "i"}},
        ]

    if params.dateFrom or params.dateTo:
        created: dict[str, datetime] = {}
        if params.dateFrom:
            created["$gte"] = params.dateFrom
        if params.dateTo:
            created["$lte"] = params.dateTo
        filters["createdAt"] = created

    return filters


def build_sort(params: OrderListParams) -> list[tuple[str, int]]:
    """Sort keys for a listing; ``_id`` breaks ties so pages are stable."""
    direction = -1 if SortOrder(params.sortOrder) == SortOrder.DESC else 1
    return [(SortField(params.sortBy).value, direction), ("_id", direction)]


def build_pagination(total: int, page: int, limit: int) -> Pagination:
    """Pagination metadata computed from the filtered count."""
    total_pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        currentPage=page,
        totalPages=total_pages,
        totalOrders=total,
        hasNextPage=page < total_pages,
        hasPrevPage=page > 1,
        limit=limit,
    )
