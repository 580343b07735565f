from __future__ import annotations

from typing import Any

from flask import Blueprint, current_app, jsonify, request

from app.crm.db import db_session
from app.crm.modules.customers.query import CustomerListQuery, list_customers
from app.crm.modules.customers.service import (
    ValidationError,
    add_address,
    create_customer,
    delete_address,
    delete_customer,
    get_address_by_id,
    get_customer_by_id,
    list_addresses,
    update_address,
    update_customer,
    validate_address_payload,
    validate_customer_payload,
)

bp = Blueprint("customers", __name__)

# Ids beyond a signed 64-bit integer cannot exist in the table; routing answers 404.
MAX_ROW_ID = 2**63 - 1
CUSTOMER_ID = f"<int(max={MAX_ROW_ID}):customer_id>"
ADDRESS_ID = f"<int(max={MAX_ROW_ID}):address_id>"


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _invalid(message: str, errors: list[ValidationError]):
    return jsonify({"error": message, "fields": [e.field for e in errors]}), 400


@bp.post("/customers")
def customers_create():
    payload = _json_body()
    errors = validate_customer_payload(payload)
    if errors:
        return _invalid("Invalid customer data", errors)

    s = db_session()
    c = create_customer(s, payload)
    s.commit()

    addresses = payload.get("addresses")
    if isinstance(addresses, list) and addresses:
        return jsonify({"message": "Customer and addresses created", "customerId": c.id})
    return jsonify({"message": "Customer created", "customerId": c.id})


@bp.get("/customers")
def customers_list():
    q = CustomerListQuery.from_args(
        request.args,
        default_limit=current_app.config["DEFAULT_PAGE_SIZE"],
        max_limit=current_app.config["MAX_PAGE_SIZE"],
    )
    result = list_customers(db_session(), q)
    return jsonify({
        "message": "success",
        "data": [c.to_dict() for c in result.customers],
        "pagination": result.pagination(),
    })


@bp.get(f"/customers/{CUSTOMER_ID}")
def customers_detail(customer_id: int):
    s = db_session()
    c = get_customer_by_id(s, customer_id)
    if not c:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify({
        "message": "success",
        "data": {
            "customer": c.to_dict(),
            "addresses": [a.to_dict() for a in list_addresses(s, c.id)],
        },
    })


@bp.put(f"/customers/{CUSTOMER_ID}")
def customers_update(customer_id: int):
    payload = _json_body()
    errors = validate_customer_payload(payload)
    if errors:
        return _invalid("Invalid customer data", errors)

    s = db_session()
    c = get_customer_by_id(s, customer_id)
    if not c:
        return jsonify({"error": "Customer not found"}), 404
    update_customer(s, c, payload)
    s.commit()
    return jsonify({"message": "Customer updated"})


@bp.delete(f"/customers/{CUSTOMER_ID}")
def customers_delete(customer_id: int):
    s = db_session()
    c = get_customer_by_id(s, customer_id)
    if not c:
        return jsonify({"error": "Customer not found"}), 404
    delete_customer(s, c)
    s.commit()
    return jsonify({"message": "Customer deleted"})


@bp.post(f"/customers/{CUSTOMER_ID}/addresses")
def addresses_create(customer_id: int):
    payload = _json_body()
    errors = validate_address_payload(payload)
    if errors:
        return _invalid("Invalid address data", errors)

    s = db_session()
    a = add_address(s, customer_id, payload)
    s.commit()
    return jsonify({"message": "Address added", "addressId": a.id})


@bp.get(f"/customers/{CUSTOMER_ID}/addresses")
def addresses_list(customer_id: int):
    rows = list_addresses(db_session(), customer_id)
    return jsonify({"message": "success", "data": [a.to_dict() for a in rows]})


@bp.put(f"/addresses/{ADDRESS_ID}")
def addresses_update(address_id: int):
    payload = _json_body()
    errors = validate_address_payload(payload)
    if errors:
        return _invalid("Invalid address data", errors)

    s = db_session()
    a = get_address_by_id(s, address_id)
    if not a:
        return jsonify({"error": "Address not found"}), 404
    update_address(s, a, payload)
    s.commit()
    return jsonify({"message": "Address updated"})


@bp.delete(f"/addresses/{ADDRESS_ID}")
def addresses_delete(address_id: int):
    s = db_session()
    a = get_address_by_id(s, address_id)
    if not a:
        return jsonify({"error": "Address not found"}), 404
    delete_address(s, a)
    s.commit()
    return jsonify({"message": "Address deleted"})
