"""ORM models for the sales transaction store.

One flat fact table, ``sale_record``, holds a row per transaction with
denormalized customer, product and operational attributes. Free-text tags
live in ``sale_record_tag`` so that "record has any of these tags" is a plain
EXISTS query on every backend.

Records are written only by the CSV importer; the API reads them.
"""

import datetime
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class SaleRecord(Base):
    """Single sales transaction.

    Attributes:
        id: Surrogate primary key.
        customer_*: Customer attributes at time of sale.
        product_*, brand: Product attributes at time of sale.
        quantity: Units sold.
        price_per_unit: Unit price.
        discount_percentage: Discount applied, in percent.
        total_amount: Gross amount (before discount).
        final_amount: Net amount (after discount); expected <= total_amount.
        date: Transaction date.
        payment_method, order_status, delivery_type: Operational attributes.
        store_id, store_location, salesperson_id, employee_name: Point of sale.
        tags: Product tags (one row per tag).
    """

    __tablename__ = "sale_record"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Customer
    customer_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(200), index=True, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), index=True, nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    customer_region: Mapped[str | None] = mapped_column(String(50), index=True, nullable=True)
    customer_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Product
    product_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    product_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)
    product_category: Mapped[str | None] = mapped_column(String(100), index=True, nullable=True)

    # Transaction
    quantity: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    price_per_unit: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    discount_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), index=True, nullable=True)
    final_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    # Operational
    date: Mapped[datetime.date | None] = mapped_column(Date, index=True, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), index=True, nullable=True)
    order_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    delivery_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    store_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    store_location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    salesperson_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    employee_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    tags: Mapped[list["SaleRecordTag"]] = relationship(
        back_populates="sale_record",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        # Default listing: newest first within a region
        Index("ix_sale_record_region_date", "customer_region", "date"),
    )


class SaleRecordTag(Base):
    """Tag attached to a sale record (many tags per record)."""

    __tablename__ = "sale_record_tag"

    sale_record_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sale_record.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag: Mapped[str] = mapped_column(String(50), primary_key=True, index=True)

    sale_record: Mapped["SaleRecord"] = relationship(back_populates="tags")
