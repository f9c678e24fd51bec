"""
Pydantic schemas for product endpoints (inputs and responses).

Request bodies are validated strictly: numbers must arrive as JSON numbers and
names as JSON strings. Query parameters are always strings and are coerced.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

NAME_MAX_LENGTH = 100
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Matches the products.price column, numeric(12, 2).
PRICE_SCALE = 2
PRICE_MAX = Decimal(10) ** 10
# OFFSET is a bigint, so (page - 1) * MAX_LIMIT must stay below 2**63.
MAX_PAGE = (2**63 - 1) // MAX_LIMIT + 1

_UUID_PATTERN = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")

_url_adapter = TypeAdapter(AnyUrl)


def _check_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise PydanticCustomError("name_required", "Name is required")
    if len(value) > NAME_MAX_LENGTH:
        raise PydanticCustomError("name_too_long", "Name too long")
    return value


def _check_price(value: float) -> float:
    if not math.isfinite(value) or value <= 0:
        raise PydanticCustomError("price_not_positive", "Price must be positive")
    amount = Decimal(str(value)).normalize()
    if amount >= PRICE_MAX:
        raise PydanticCustomError("price_too_large", "Price too large")
    if amount.as_tuple().exponent < -PRICE_SCALE:
        raise PydanticCustomError("price_scale", "Price must have at most 2 decimal places")
    return value


def _check_quantity(value: int) -> int:
    if value < 0:
        raise PydanticCustomError("quantity_negative", "Quantity must be non-negative")
    return value


def _check_image(value: str) -> str | None:
    # Empty string means "no image".
    if value == "":
        return None
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        raise PydanticCustomError("invalid_url", "Invalid URL") from None
    return value


ProductName = Annotated[StrictStr, AfterValidator(_check_name)]
Price = Annotated[StrictFloat, AfterValidator(_check_price)]
Quantity = Annotated[StrictInt, AfterValidator(_check_quantity)]
ImageUrl = Annotated[StrictStr, AfterValidator(_check_image)]


class ProductCreate(BaseModel):
    name: ProductName
    price: Price
    quantity: Quantity
    image: Optional[ImageUrl] = None


class ProductUpdate(BaseModel):
    """
    Partial update. A missing (or null) field means "keep the stored value".
    """

    name: Optional[ProductName] = None
    price: Optional[Price] = None
    quantity: Optional[Quantity] = None
    image: Optional[ImageUrl] = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ProductPathParams(BaseModel):
    id: UUID

    @field_validator("id", mode="before")
    @classmethod
    def _parse_id(cls, value: Any) -> UUID:
        if isinstance(value, UUID):
            return value
        # Only the canonical hyphenated 8-4-4-4-12 form is accepted.
        if not isinstance(value, str) or not _UUID_PATTERN.fullmatch(value):
            raise PydanticCustomError("invalid_id", "Invalid product ID")
        return UUID(value)


class ProductListQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    name: Optional[str] = None
    min_price: Optional[float] = Field(default=None, alias="minPrice")
    max_price: Optional[float] = Field(default=None, alias="maxPrice")

    @field_validator("page")
    @classmethod
    def _check_page(cls, value: int) -> int:
        if value < 1:
            raise PydanticCustomError("page_too_small", "Page must be at least 1")
        if value > MAX_PAGE:
            raise PydanticCustomError("page_too_large", "Page is too large")
        return value

    @field_validator("limit")
    @classmethod
    def _check_limit(cls, value: int) -> int:
        if not 1 <= value <= MAX_LIMIT:
            raise PydanticCustomError(
                "limit_out_of_range",
                "Limit must be between 1 and {max_limit}",
                {"max_limit": MAX_LIMIT},
            )
        return value

    @field_validator("min_price")
    @classmethod
    def _check_min_price(cls, value: float | None) -> float | None:
        if value is not None and (not math.isfinite(value) or value < 0):
            raise PydanticCustomError("min_price_negative", "Min price must be non-negative")
        return value

    @field_validator("max_price")
    @classmethod
    def _check_max_price(cls, value: float | None) -> float | None:
        if value is not None and (not math.isfinite(value) or value < 0):
            raise PydanticCustomError("max_price_negative", "Max price must be non-negative")
        return value


class Product(BaseModel):
    id: UUID
    name: str
    price: float
    quantity: int
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_products: int
    total_pages: int
    current_page: int
    page_size: int
    has_next_page: bool
    has_prev_page: bool


class ProductListResponse(BaseModel):
    products: list[Product]
    pagination: Pagination
