"""CuttingOperation and CultivationCycle ORM models: the production records.

A cutting operation originates one cultivation cycle per module it cut.
``cultivation_cycles.cutting_operation_id`` cascades on delete, so removing
an operation removes every cycle (and every downstream stage timestamp
recorded on it) in one statement.

``CuttingOperation.module_cuts`` (JSONB) keeps the ordered cut list:

    [{"module_id": "...", "lines_cut": 12}, ...]
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import Boolean, Date, Enum, Float, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.enums import CycleStatusEnum


class CuttingOperation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A bulk cutting/planting event paid to a service provider."""

    __tablename__ = "cutting_operations"
    __table_args__ = (Index("ix_cutting_operations_site_date", "site_id", "operation_date"),)

    operation_date: Mapped[date] = mapped_column(Date, nullable=False)
    site_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sites.id", ondelete="CASCADE"),
        nullable=False,
    )
    service_provider_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("service_providers.id", ondelete="SET NULL"),
        nullable=True,
    )
    seaweed_type_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("seaweed_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    module_cuts: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_paid: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )
    notes: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    def __repr__(self) -> str:
        return f"<CuttingOperation id={self.id} date={self.operation_date}>"


class CultivationCycle(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One planting-to-export lifecycle on a single module."""

    __tablename__ = "cultivation_cycles"
    __table_args__ = (
        Index("ix_cultivation_cycles_module", "module_id"),
        Index("ix_cultivation_cycles_operation", "cutting_operation_id"),
    )

    module_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("modules.id", ondelete="CASCADE"),
        nullable=False,
    )
    seaweed_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("seaweed_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    cutting_operation_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cutting_operations.id", ondelete="CASCADE"),
        nullable=True,
    )
    planting_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[CycleStatusEnum] = mapped_column(
        Enum(
            CycleStatusEnum,
            name="cycle_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=CycleStatusEnum.PLANTED,
        server_default=CycleStatusEnum.PLANTED.value,
    )
    initial_weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    lines_planted: Mapped[float | None] = mapped_column(Float, nullable=True)

    # ── Harvest ──────────────────────────────────────────────────────────
    harvest_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    harvested_weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    lines_harvested: Mapped[float | None] = mapped_column(Float, nullable=True)
    cuttings_taken_at_harvest_kg: Mapped[float | None] = mapped_column(Float, nullable=True)

    # ── Downstream pipeline markers ──────────────────────────────────────
    drying_completion_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    bagged_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    stock_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    export_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    processing_notes: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<CultivationCycle id={self.id} module={self.module_id} "
            f"status={self.status}>"
        )
