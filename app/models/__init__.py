"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from app.models import CultivationCycle, CuttingOperation, Module, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# ── Production records ──────────────────────────────────────────────────────
from app.models.cultivation import CultivationCycle, CuttingOperation

# ── Enums ───────────────────────────────────────────────────────────────────
from app.models.enums import (
    AlertStatusEnum,
    CycleStatusEnum,
    ModuleStatusEnum,
    PipelineStageEnum,
    SeverityEnum,
    SortDirectionEnum,
)

# ── Farm layout & reference tables ──────────────────────────────────────────
from app.models.sites import (
    Farmer,
    Module,
    SeaweedType,
    ServiceProvider,
    Site,
    SiteObservation,
    Zone,
)

__all__ = [
    "AlertStatusEnum",
    # Base & mixins
    "Base",
    # Production records
    "CultivationCycle",
    "CuttingOperation",
    # Enums
    "CycleStatusEnum",
    # Layout & reference
    "Farmer",
    "Module",
    "ModuleStatusEnum",
    "PipelineStageEnum",
    "SeaweedType",
    "ServiceProvider",
    "SeverityEnum",
    "Site",
    "SiteObservation",
    "SortDirectionEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Zone",
]
