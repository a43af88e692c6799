"""Site, Zone, Module and reference ORM models: the physical farm layout.

``Module.status_history`` (JSONB) is an ordered list of availability entries;
the last entry is the module's current state:

    [
        {"status": "FREE", "changed_on": "2026-01-04"},
        {"status": "PLANTED", "changed_on": "2026-02-11", "cycle_id": "..."}
    ]
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# ═══════════════════════════════════════════════════════════════════════════
# Site / Zone
# ═══════════════════════════════════════════════════════════════════════════


class Site(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A coastal farming site grouping zones of modules."""

    __tablename__ = "sites"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(32), nullable=True)

    zones: Mapped[list[Zone]] = relationship(
        back_populates="site",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Site id={self.id} name={self.name!r}>"


class Zone(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A plantation zone inside a site."""

    __tablename__ = "zones"
    __table_args__ = (Index("ix_zones_site_id", "site_id"),)

    site_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sites.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    site: Mapped[Site] = relationship(back_populates="zones")


# ═══════════════════════════════════════════════════════════════════════════
# Reference tables
# ═══════════════════════════════════════════════════════════════════════════


class SeaweedType(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Cultivated species / variety."""

    __tablename__ = "seaweed_types"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)


class Farmer(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "farmers"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    site_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sites.id", ondelete="SET NULL"),
        nullable=True,
    )


class ServiceProvider(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Contractor supplying cuttings for planting operations."""

    __tablename__ = "service_providers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)


# ═══════════════════════════════════════════════════════════════════════════
# Module
# ═══════════════════════════════════════════════════════════════════════════


class Module(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A physical growing unit (set of lines) inside a zone."""

    __tablename__ = "modules"
    __table_args__ = (
        Index("ix_modules_site_zone", "site_id", "zone_id"),
    )

    code: Mapped[str] = mapped_column(String(64), nullable=False)
    site_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sites.id", ondelete="CASCADE"),
        nullable=False,
    )
    zone_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("zones.id", ondelete="SET NULL"),
        nullable=True,
    )
    farmer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("farmers.id", ondelete="SET NULL"),
        nullable=True,
    )
    lines: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    status_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default="[]",
    )

    def __repr__(self) -> str:
        return f"<Module id={self.id} code={self.code!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# Site observations (periodic water tests)
# ═══════════════════════════════════════════════════════════════════════════


class SiteObservation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Periodic environmental test recorded for a site."""

    __tablename__ = "site_observations"
    __table_args__ = (Index("ix_site_observations_site_date", "site_id", "observed_on"),)

    site_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sites.id", ondelete="CASCADE"),
        nullable=False,
    )
    observed_on: Mapped[date] = mapped_column(Date, nullable=False)
    temperature_c: Mapped[float | None] = mapped_column(Float, nullable=True)
    salinity_ppt: Mapped[float | None] = mapped_column(Float, nullable=True)
    ph: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2048), nullable=True)
