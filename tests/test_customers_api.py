"""Tests for the customers/addresses JSON API."""
import pytest
from sqlalchemy import text

from app.crm import create_app
from app.crm.db import session_scope
from app.crm.models import Address, Customer


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    for k in ("DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE", "CORS_ORIGINS"):
        monkeypatch.delenv(k, raising=False)
    return create_app()


@pytest.fixture()
def client(app):
    return app.test_client()


ANN = {
    "first_name": "Ann",
    "last_name": "Lee",
    "phone_number": "5551234567",
    "addresses": [
        {"address_details": "1 Main St", "city": "Springfield", "state": "IL", "pin_code": "62704"},
    ],
}


def _address(**overrides):
    data = {"address_details": "9 Elm St", "city": "Shelbyville", "state": "IL", "pin_code": "62565"}
    data.update(overrides)
    return data


def _count(app, model) -> int:
    with session_scope(app) as s:
        return s.query(model).count()


def test_create_and_get_customer_end_to_end(client):
    r = client.post("/api/customers", json=ANN)
    assert r.status_code == 200
    assert r.json == {"message": "Customer and addresses created", "customerId": 1}

    r = client.get("/api/customers/1")
    assert r.status_code == 200
    assert r.json == {
        "message": "success",
        "data": {
            "customer": {"id": 1, "first_name": "Ann", "last_name": "Lee", "phone_number": "5551234567"},
            "addresses": [
                {
                    "id": 1,
                    "customer_id": 1,
                    "address_details": "1 Main St",
                    "city": "Springfield",
                    "state": "IL",
                    "pin_code": "62704",
                }
            ],
        },
    }


def test_create_customer_without_addresses(client):
    r = client.post("/api/customers", json={"first_name": "Bo", "last_name": "Chen", "phone_number": "111"})
    assert r.status_code == 200
    assert r.json["message"] == "Customer created"
    assert isinstance(r.json["customerId"], int) and r.json["customerId"] > 0

    r = client.post(
        "/api/customers",
        json={"first_name": "Cy", "last_name": "Diaz", "phone_number": "222", "addresses": []},
    )
    assert r.json["message"] == "Customer created"


def test_create_customer_trims_values(client):
    r = client.post("/api/customers", json={"first_name": "  Ann ", "last_name": "Lee\n", "phone_number": " 555 "})
    cid = r.json["customerId"]
    customer = client.get(f"/api/customers/{cid}").json["data"]["customer"]
    assert customer["first_name"] == "Ann"
    assert customer["last_name"] == "Lee"
    assert customer["phone_number"] == "555"


@pytest.mark.parametrize(
    "payload",
    [
        {"last_name": "Lee", "phone_number": "5551234567"},
        {"first_name": "", "last_name": "Lee", "phone_number": "5551234567"},
        {"first_name": "   ", "last_name": "Lee", "phone_number": "5551234567"},
        {"first_name": "Ann", "last_name": "Lee", "phone_number": None},
        {"first_name": "Ann", "last_name": "Lee", "phone_number": 5551234567},
    ],
)
def test_create_customer_validation(app, client, payload):
    r = client.post("/api/customers", json=payload)
    assert r.status_code == 400
    assert r.json["error"] == "Invalid customer data"
    assert _count(app, Customer) == 0


def test_create_customer_reports_invalid_fields(client):
    r = client.post("/api/customers", json={"first_name": "Ann"})
    assert r.status_code == 400
    assert r.json["fields"] == ["last_name", "phone_number"]


def test_create_customer_non_json_body(app, client):
    r = client.post("/api/customers", data="first_name=Ann", content_type="text/plain")
    assert r.status_code == 400
    assert r.json["error"] == "Invalid customer data"
    assert _count(app, Customer) == 0


def test_create_customer_skips_invalid_addresses(client):
    payload = dict(ANN)
    payload["addresses"] = [
        _address(city="Springfield"),
        _address(city=""),
        {"address_details": "no city or state"},
        "not an address",
        _address(pin_code="62701"),
    ]
    r = client.post("/api/customers", json=payload)
    assert r.status_code == 200
    assert r.json["message"] == "Customer and addresses created"

    addresses = client.get(f"/api/customers/{r.json['customerId']}").json["data"]["addresses"]
    assert [(a["city"], a["pin_code"]) for a in addresses] == [
        ("Springfield", "62565"),
        ("Shelbyville", "62701"),
    ]


def test_duplicate_phone_number_is_server_error(app, client):
    assert client.post("/api/customers", json=ANN).status_code == 200

    dup = {"first_name": "Other", "last_name": "Person", "phone_number": ANN["phone_number"], "addresses": [_address()]}
    r = client.post("/api/customers", json=dup)
    assert r.status_code == 500
    assert "UNIQUE" in r.json["error"]

    # neither the customer nor its addresses were written
    assert _count(app, Customer) == 1
    assert _count(app, Address) == 1


def test_get_unknown_customer(client):
    r = client.get("/api/customers/999")
    assert r.status_code == 404
    assert r.json == {"error": "Customer not found"}


def test_non_integer_id_is_not_found(client):
    r = client.get("/api/customers/abc")
    assert r.status_code == 404
    assert "error" in r.json


def test_update_customer(client):
    client.post("/api/customers", json=ANN)
    r = client.put(
        "/api/customers/1",
        json={"first_name": "Anne", "last_name": "Leigh", "phone_number": "5550000000", "addresses": []},
    )
    assert r.status_code == 200
    assert r.json == {"message": "Customer updated"}

    data = client.get("/api/customers/1").json["data"]
    assert data["customer"] == {"id": 1, "first_name": "Anne", "last_name": "Leigh", "phone_number": "5550000000"}
    # addresses in an update body are ignored
    assert len(data["addresses"]) == 1


def test_update_customer_invalid_leaves_row_unchanged(client):
    client.post("/api/customers", json=ANN)
    r = client.put("/api/customers/1", json={"first_name": "", "last_name": "Lee", "phone_number": "5551234567"})
    assert r.status_code == 400
    assert r.json["error"] == "Invalid customer data"

    customer = client.get("/api/customers/1").json["data"]["customer"]
    assert customer["first_name"] == "Ann"


def test_update_unknown_customer(client):
    r = client.put("/api/customers/42", json={"first_name": "A", "last_name": "B", "phone_number": "C"})
    assert r.status_code == 404
    assert r.json == {"error": "Customer not found"}


def test_update_customer_duplicate_phone(client):
    client.post("/api/customers", json=ANN)
    client.post("/api/customers", json={"first_name": "Bo", "last_name": "Chen", "phone_number": "111"})

    r = client.put("/api/customers/2", json={"first_name": "Bo", "last_name": "Chen", "phone_number": ANN["phone_number"]})
    assert r.status_code == 500
    assert "UNIQUE" in r.json["error"]
    assert client.get("/api/customers/2").json["data"]["customer"]["phone_number"] == "111"


def test_delete_customer_cascades_addresses(app, client):
    payload = dict(ANN)
    payload["addresses"] = [_address(), _address(city="Springfield")]
    client.post("/api/customers", json=payload)
    client.post("/api/customers", json={"first_name": "Bo", "last_name": "Chen", "phone_number": "111", "addresses": [_address()]})

    r = client.delete("/api/customers/1")
    assert r.status_code == 200
    assert r.json == {"message": "Customer deleted"}

    assert client.get("/api/customers/1").status_code == 404
    r = client.get("/api/customers/1/addresses")
    assert r.status_code == 200
    assert r.json["data"] == []
    # the other customer's address survives
    assert _count(app, Address) == 1


def test_database_enforces_cascade(app, client):
    client.post("/api/customers", json=ANN)
    with session_scope(app) as s:
        s.execute(text("DELETE FROM customers WHERE id = :id"), {"id": 1})
    assert _count(app, Address) == 0


def test_delete_unknown_customer(client):
    r = client.delete("/api/customers/999")
    assert r.status_code == 404
    assert r.json == {"error": "Customer not found"}


def test_add_and_list_addresses(client):
    client.post("/api/customers", json={"first_name": "Bo", "last_name": "Chen", "phone_number": "111"})

    r = client.get("/api/customers/1/addresses")
    assert r.status_code == 200
    assert r.json == {"message": "success", "data": []}

    r = client.post("/api/customers/1/addresses", json=_address())
    assert r.status_code == 200
    assert r.json == {"message": "Address added", "addressId": 1}

    r = client.get("/api/customers/1/addresses")
    assert r.json["data"] == [dict(_address(), id=1, customer_id=1)]


def test_add_address_validation(app, client):
    client.post("/api/customers", json={"first_name": "Bo", "last_name": "Chen", "phone_number": "111"})
    r = client.post("/api/customers/1/addresses", json=_address(state=" "))
    assert r.status_code == 400
    assert r.json["error"] == "Invalid address data"
    assert r.json["fields"] == ["state"]
    assert _count(app, Address) == 0


def test_add_address_for_unknown_customer_fails_foreign_key(app, client):
    r = client.post("/api/customers/77/addresses", json=_address())
    assert r.status_code == 500
    assert "FOREIGN KEY" in r.json["error"]
    assert _count(app, Address) == 0


def test_list_addresses_for_unknown_customer_is_empty(client):
    r = client.get("/api/customers/404/addresses")
    assert r.status_code == 200
    assert r.json["data"] == []


def test_update_address(client):
    client.post("/api/customers", json=ANN)
    r = client.put("/api/addresses/1", json=_address(city="Capital City"))
    assert r.status_code == 200
    assert r.json == {"message": "Address updated"}

    address = client.get("/api/customers/1/addresses").json["data"][0]
    assert address["city"] == "Capital City"
    assert address["customer_id"] == 1


def test_update_address_errors(client):
    client.post("/api/customers", json=ANN)

    r = client.put("/api/addresses/1", json=_address(pin_code=""))
    assert r.status_code == 400
    assert r.json["error"] == "Invalid address data"
    assert client.get("/api/customers/1/addresses").json["data"][0]["pin_code"] == "62704"

    r = client.put("/api/addresses/99", json=_address())
    assert r.status_code == 404
    assert r.json == {"error": "Address not found"}


def test_delete_address(client):
    client.post("/api/customers", json=ANN)
    r = client.delete("/api/addresses/1")
    assert r.status_code == 200
    assert r.json == {"message": "Address deleted"}
    assert client.get("/api/customers/1/addresses").json["data"] == []

    r = client.delete("/api/addresses/1")
    assert r.status_code == 404
    assert r.json == {"error": "Address not found"}


HUGE_ID = 10**20


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", f"/api/customers/{HUGE_ID}"),
        ("put", f"/api/customers/{HUGE_ID}"),
        ("delete", f"/api/customers/{HUGE_ID}"),
        ("get", f"/api/customers/{HUGE_ID}/addresses"),
        ("post", f"/api/customers/{HUGE_ID}/addresses"),
        ("put", f"/api/addresses/{HUGE_ID}"),
        ("delete", f"/api/addresses/{HUGE_ID}"),
    ],
)
def test_out_of_range_ids_are_not_found(client, method, path):
    body = {"first_name": "A", "last_name": "B", "phone_number": "C"}
    if "addresses" in path:
        body = _address()
    r = getattr(client, method)(path, json=body)
    assert r.status_code == 404
    assert "error" in r.json


def test_largest_valid_id_reaches_the_handler(client):
    r = client.get(f"/api/customers/{2**63 - 1}")
    assert r.status_code == 404
    assert r.json == {"error": "Customer not found"}
