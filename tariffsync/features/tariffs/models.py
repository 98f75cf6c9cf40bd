"""Tariff ORM models.

A TariffRequest is one calendar day's pull from the provider; its
WarehouseTariff children are the per-warehouse box tariffs of that pull.

Grain: one request per request_date, one warehouse row per
(request_id, warehouse_name). Children are replaced wholesale on every sync
of their date and removed by cascade with their parent.
"""

import datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tariffsync.core.database import Base
from tariffsync.shared.models import TimestampMixin


class TariffRequest(TimestampMixin, Base):
    """Daily tariff pull.

    Attributes:
        id: Primary key.
        request_date: Calendar date the tariffs apply to (unique business key).
        next_boundary_date: Start date of the next pricing regime, if announced.
        max_boundary_date: Last date the current pricing regime is set until.
    """

    __tablename__ = "tariff_request"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_date: Mapped[datetime.date] = mapped_column(Date, unique=True, index=True)
    next_boundary_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    max_boundary_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)

    warehouses: Mapped[list["WarehouseTariff"]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="WarehouseTariff.warehouse_name",
    )


class WarehouseTariff(Base):
    """Box tariffs of one warehouse for one TariffRequest.

    Every numeric column is nullable: NULL means the provider did not give a
    usable value, which is distinct from a confirmed zero.

    Attributes:
        id: Primary key.
        request_id: Owning TariffRequest (cascade delete).
        warehouse_name: Warehouse display name as sent by the provider.
        coefficient: Multiplier applied to delivery and storage cost.
        delivery_base: Delivery cost for the first liter.
        delivery_per_liter: Delivery cost per additional liter.
        storage_base: Storage cost for the first liter.
        storage_per_liter: Storage cost per additional liter.
    """

    __tablename__ = "warehouse_tariff"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tariff_request.id", ondelete="CASCADE"),
        index=True,
    )
    warehouse_name: Mapped[str] = mapped_column(String(255))
    coefficient: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    delivery_base: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    delivery_per_liter: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    storage_base: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    storage_per_liter: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    request: Mapped["TariffRequest"] = relationship(back_populates="warehouses")

    __table_args__ = (
        UniqueConstraint("request_id", "warehouse_name", name="uq_warehouse_tariff_request_name"),
    )
