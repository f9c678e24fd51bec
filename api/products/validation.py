"""
Request validation for product endpoints.

Each `validate_*` function takes untyped input (body, path params or query
string) and returns a `ValidationResult`: either the typed value or every
field violation that was found. These functions never raise.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from core.errors import FieldViolation

from .schemas import ProductCreate, ProductListQuery, ProductPathParams, ProductUpdate

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class ValidationResult(Generic[ModelT]):
    value: ModelT | None = None
    errors: tuple[FieldViolation, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


def _violations(exc: ValidationError, *, root: str) -> tuple[FieldViolation, ...]:
    return tuple(
        FieldViolation(
            field=".".join(str(part) for part in err["loc"]) or root,
            message=err["msg"],
        )
        for err in exc.errors()
    )


def _parse(model: type[ModelT], data: Any, *, root: str) -> ValidationResult[ModelT]:
    try:
        value = model.model_validate(data)
    except ValidationError as exc:
        return ValidationResult(errors=_violations(exc, root=root))
    return ValidationResult(value=value)


def validate_create(body: Any) -> ValidationResult[ProductCreate]:
    return _parse(ProductCreate, body, root="body")


def validate_update(body: Any) -> ValidationResult[ProductUpdate]:
    return _parse(ProductUpdate, body, root="body")


def validate_path(params: Mapping[str, Any]) -> ValidationResult[ProductPathParams]:
    return _parse(ProductPathParams, dict(params), root="params")


def validate_list_query(query: Mapping[str, Any]) -> ValidationResult[ProductListQuery]:
    result = _parse(ProductListQuery, dict(query), root="query")
    if not result.ok:
        return result

    filters = result.value
    if (
        filters.min_price is not None
        and filters.max_price is not None
        and filters.min_price > filters.max_price
    ):
        return ValidationResult(
            errors=(
                FieldViolation(
                    field="minPrice",
                    message="Min price must be less than or equal to max price",
                ),
            )
        )
    return result
