"""
List-endpoint query builder.

Request args are parsed into an immutable CustomerListQuery, which is turned
into SQLAlchemy predicates. Filter values only ever reach the database as
bound parameters.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.crm.modules.customers.models import Address, Customer

SORT_FIELDS = {
    "id": Customer.id,
    "first_name": Customer.first_name,
    "last_name": Customer.last_name,
    "phone_number": Customer.phone_number,
}
SORT_ORDERS = ("ASC", "DESC")

ADDRESS_FILTERS = {
    "city": Address.city,
    "state": Address.state,
    "pin_code": Address.pin_code,
}


def _positive_int(raw: str | None, default: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _optional(raw: str | None) -> str | None:
    # blank means absent; anything else is matched verbatim
    if raw is None or not raw.strip():
        return None
    return raw


@dataclass(frozen=True)
class CustomerListQuery:
    page: int = 1
    limit: int = 10
    city: str | None = None
    state: str | None = None
    pin_code: str | None = None
    search: str | None = None
    sort_field: str = "id"
    sort_order: str = "ASC"

    @classmethod
    def from_args(cls, args: Mapping[str, str], *, default_limit: int = 10, max_limit: int = 100) -> "CustomerListQuery":
        sort_field = (args.get("sortField") or "").strip()
        sort_order = (args.get("sortOrder") or "").strip().upper()
        limit = _positive_int(args.get("limit"), default_limit)
        return cls(
            page=_positive_int(args.get("page"), 1),
            limit=min(limit, max_limit),
            city=_optional(args.get("city")),
            state=_optional(args.get("state")),
            pin_code=_optional(args.get("pin_code")),
            search=_optional(args.get("search")),
            sort_field=sort_field if sort_field in SORT_FIELDS else "id",
            sort_order=sort_order if sort_order in SORT_ORDERS else "ASC",
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def filters(self) -> list[Any]:
        """WHERE-clause predicates shared by the count and page queries."""
        clauses: list[Any] = []
        for name, column in ADDRESS_FILTERS.items():
            value = getattr(self, name)
            if value is not None:
                # Semi-join keeps one row per customer however many addresses match.
                matching = select(Address.customer_id).where(column == value)
                clauses.append(Customer.id.in_(matching))
        if self.search is not None:
            like = f"%{self.search}%"
            clauses.append(
                or_(
                    Customer.first_name.ilike(like),
                    Customer.last_name.ilike(like),
                    Customer.phone_number.ilike(like),
                )
            )
        return clauses

    def order_by(self) -> list[Any]:
        column = SORT_FIELDS[self.sort_field]
        primary = column.desc() if self.sort_order == "DESC" else column.asc()
        if self.sort_field == "id":
            return [primary]
        return [primary, Customer.id.asc()]


@dataclass(frozen=True)
class CustomerPage:
    customers: list[Customer]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict[str, int]:
        return {
            "total": self.total,
            "page": self.page,
            "pages": self.pages,
            "limit": self.limit,
        }


def list_customers(s: Session, q: CustomerListQuery) -> CustomerPage:
    base = s.query(Customer).filter(*q.filters())
    total = base.order_by(None).count()
    if q.offset >= total:
        # past the last row; also keeps huge offsets away from the driver
        return CustomerPage(customers=[], total=total, page=q.page, limit=q.limit)
    customers = base.order_by(*q.order_by()).offset(q.offset).limit(q.limit).all()
    return CustomerPage(customers=customers, total=total, page=q.page, limit=q.limit)
