"""
Dynamic list query for the products table.

`ProductQuery` is immutable: each filter method returns a new query with one
more predicate and one more positional parameter. The count statement and the
page statement share the exact same predicates, so pagination totals always
describe the rows being paged.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, NamedTuple

from .schemas import ProductListQuery

PRODUCT_COLUMNS = "id, name, price, quantity, image, created_at, updated_at"


class Statement(NamedTuple):
    sql: str
    params: tuple[Any, ...]


def escape_like(value: str) -> str:
    """
    Escape LIKE wildcards so user text matches literally (default escape char is backslash).
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def to_decimal(value: float | int) -> Decimal:
    # Go through str() so 0.1 becomes Decimal("0.1"), not the binary expansion.
    return Decimal(str(value))


@dataclass(frozen=True)
class ProductQuery:
    predicates: tuple[str, ...] = ()
    params: tuple[Any, ...] = ()

    @classmethod
    def from_filters(cls, filters: ProductListQuery) -> ProductQuery:
        return (
            cls()
            .name_contains(filters.name)
            .price_at_least(filters.min_price)
            .price_at_most(filters.max_price)
        )

    def _next_placeholder(self) -> str:
        return f"${len(self.params) + 1}"

    def _with(self, template: str, value: Any) -> ProductQuery:
        predicate = template.format(self._next_placeholder())
        return replace(
            self,
            predicates=self.predicates + (predicate,),
            params=self.params + (value,),
        )

    def name_contains(self, name: str | None) -> ProductQuery:
        if not name:
            return self
        return self._with("name ILIKE {}", f"%{escape_like(name)}%")

    def price_at_least(self, price: float | None) -> ProductQuery:
        if price is None:
            return self
        return self._with("price >= {}", to_decimal(price))

    def price_at_most(self, price: float | None) -> ProductQuery:
        if price is None:
            return self
        return self._with("price <= {}", to_decimal(price))

    @property
    def where_clause(self) -> str:
        if not self.predicates:
            return ""
        return "WHERE " + " AND ".join(self.predicates)

    def count_statement(self) -> Statement:
        sql = " ".join(part for part in ("SELECT COUNT(*) FROM products", self.where_clause) if part)
        return Statement(sql, self.params)

    def page_statement(self, *, page: int, limit: int) -> Statement:
        limit_ph = f"${len(self.params) + 1}"
        offset_ph = f"${len(self.params) + 2}"
        parts = (
            f"SELECT {PRODUCT_COLUMNS} FROM products",
            self.where_clause,
            "ORDER BY created_at DESC, id DESC",
            f"LIMIT {limit_ph} OFFSET {offset_ph}",
        )
        sql = " ".join(part for part in parts if part)
        return Statement(sql, self.params + (limit, (page - 1) * limit))
