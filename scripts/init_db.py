import argparse
import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scripts._db_utils import create_script_engine, script_session
from app.crm.models import Address, Base, Customer

SAMPLE_CUSTOMERS = [
    {
        "first_name": "Ann",
        "last_name": "Lee",
        "phone_number": "5551234567",
        "addresses": [
            {"address_details": "1 Main St", "city": "Springfield", "state": "IL", "pin_code": "62704"},
        ],
    },
    {
        "first_name": "Ravi",
        "last_name": "Kumar",
        "phone_number": "9876543210",
        "addresses": [
            {"address_details": "12 MG Road", "city": "Bengaluru", "state": "KA", "pin_code": "560001"},
            {"address_details": "4 Park Street", "city": "Kolkata", "state": "WB", "pin_code": "700016"},
        ],
    },
    {
        "first_name": "Maria",
        "last_name": "Garcia",
        "phone_number": "5559876543",
        "addresses": [],
    },
]


def init_schema(database_url: str) -> None:
    engine = create_script_engine(database_url)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()


def seed_samples(database_url: str) -> int:
    """
    Insert sample customers in an idempotent way.
    Customers whose phone number already exists are left untouched.
    """
    created = 0
    with script_session(database_url) as s:
        for sample in SAMPLE_CUSTOMERS:
            exists = s.query(Customer.id).filter(Customer.phone_number == sample["phone_number"]).first()
            if exists:
                continue
            c = Customer(
                first_name=sample["first_name"],
                last_name=sample["last_name"],
                phone_number=sample["phone_number"],
            )
            for addr in sample["addresses"]:
                c.addresses.append(Address(**addr))
            s.add(c)
            created += 1
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the customers/addresses schema.")
    parser.add_argument("--seed", action="store_true", help="also insert sample customers")
    args = parser.parse_args()

    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///crm.db").strip()
    init_schema(db_url)
    print("Initialized database schema.")
    if args.seed:
        created = seed_samples(db_url)
        print(f"Seeded {created} sample customer(s).")


if __name__ == "__main__":
    main()
