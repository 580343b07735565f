from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.crm.models import Base


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    phone_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # Loaded addresses are deleted by the ORM cascade; ON DELETE CASCADE covers
    # deletes issued outside the ORM.
    addresses: Mapped[list["Address"]] = relationship(
        "Address",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Address.id",
        lazy="selectin",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone_number": self.phone_number,
        }


class Address(Base):
    __tablename__ = "addresses"
    __table_args__ = (
        Index("idx_addresses_customer_id", "customer_id"),
        Index("idx_addresses_city", "city"),
        Index("idx_addresses_state", "state"),
        Index("idx_addresses_pin_code", "pin_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)

    address_details: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    state: Mapped[str] = mapped_column(Text, nullable=False)
    pin_code: Mapped[str] = mapped_column(Text, nullable=False)

    customer: Mapped[Customer] = relationship("Customer", back_populates="addresses")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "address_details": self.address_details,
            "city": self.city,
            "state": self.state,
            "pin_code": self.pin_code,
        }
