from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.crm.modules.customers.models import Address, Customer

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ("first_name", "last_name", "phone_number")
ADDRESS_FIELDS = ("address_details", "city", "state", "pin_code")


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


def _clean(payload: dict[str, Any], field: str) -> str:
    value = payload.get(field)
    if not isinstance(value, str):
        return ""
    return value.strip()


def _validate_required(payload: Any, fields: tuple[str, ...]) -> list[ValidationError]:
    if not isinstance(payload, dict):
        return [ValidationError(f, f"{f} is required.") for f in fields]
    return [ValidationError(f, f"{f} is required.") for f in fields if not _clean(payload, f)]


def validate_customer_payload(payload: Any) -> list[ValidationError]:
    return _validate_required(payload, CUSTOMER_FIELDS)


def validate_address_payload(payload: Any) -> list[ValidationError]:
    return _validate_required(payload, ADDRESS_FIELDS)


def get_customer_by_id(s: Session, customer_id: int) -> Customer | None:
    return s.get(Customer, customer_id)


def get_address_by_id(s: Session, address_id: int) -> Address | None:
    return s.get(Address, address_id)


def list_addresses(s: Session, customer_id: int) -> list[Address]:
    return s.query(Address).filter(Address.customer_id == customer_id).order_by(Address.id.asc()).all()


def _address_from_payload(payload: dict[str, Any]) -> Address:
    return Address(**{f: _clean(payload, f) for f in ADDRESS_FIELDS})


def create_customer(s: Session, payload: dict[str, Any]) -> Customer:
    """
    Insert a customer plus any addresses in payload["addresses"].

    Each address is validated on its own; invalid ones are skipped and the
    rest are inserted. Nothing is committed here, so the caller's commit
    makes the customer and its addresses one unit.
    """
    c = Customer(**{f: _clean(payload, f) for f in CUSTOMER_FIELDS})

    raw_addresses = payload.get("addresses")
    skipped = 0
    if isinstance(raw_addresses, list):
        for raw in raw_addresses:
            if validate_address_payload(raw):
                skipped += 1
                continue
            c.addresses.append(_address_from_payload(raw))

    s.add(c)
    s.flush()

    if skipped:
        logger.warning("Customer %s: skipped %s invalid address(es) on create", c.id, skipped)
    logger.info("Customer created id=%s addresses=%s", c.id, len(c.addresses))
    return c


def update_customer(s: Session, c: Customer, payload: dict[str, Any]) -> Customer:
    """Overwrite name and phone. Addresses are managed through their own endpoints."""
    before = c.to_dict()
    for f in CUSTOMER_FIELDS:
        setattr(c, f, _clean(payload, f))
    s.flush()

    after = c.to_dict()
    fields_changed = [k for k in CUSTOMER_FIELDS if before[k] != after[k]]
    logger.info("Customer updated id=%s fields_changed=%s", c.id, fields_changed)
    return c


def delete_customer(s: Session, c: Customer) -> None:
    customer_id = c.id
    s.delete(c)
    s.flush()
    logger.info("Customer deleted id=%s", customer_id)


def add_address(s: Session, customer_id: int, payload: dict[str, Any]) -> Address:
    a = _address_from_payload(payload)
    a.customer_id = customer_id
    s.add(a)
    s.flush()
    logger.info("Address added id=%s customer_id=%s", a.id, customer_id)
    return a


def update_address(s: Session, a: Address, payload: dict[str, Any]) -> Address:
    for f in ADDRESS_FIELDS:
        setattr(a, f, _clean(payload, f))
    s.flush()
    logger.info("Address updated id=%s customer_id=%s", a.id, a.customer_id)
    return a


def delete_address(s: Session, a: Address) -> None:
    address_id, customer_id = a.id, a.customer_id
    s.delete(a)
    s.flush()
    logger.info("Address deleted id=%s customer_id=%s", address_id, customer_id)
