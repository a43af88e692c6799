"""PostgreSQL-backed enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM, except the
derived-only enums at the bottom which never hit the database.
"""

from enum import StrEnum

# ── Persisted enums ─────────────────────────────────────────────────────────


class CycleStatusEnum(StrEnum):
    """Furthest pipeline stage a cultivation cycle has reached."""

    PLANTED = "PLANTED"
    GROWING = "GROWING"
    HARVESTED = "HARVESTED"
    DRIED = "DRIED"
    BAGGED = "BAGGED"
    IN_STOCK = "IN_STOCK"
    EXPORTED = "EXPORTED"


class ModuleStatusEnum(StrEnum):
    """Availability states recorded in a module's status history."""

    FREE = "FREE"
    PLANTED = "PLANTED"
    GROWING = "GROWING"
    HARVESTED = "HARVESTED"
    MAINTENANCE = "MAINTENANCE"


# ── Derived enums (computed, never stored) ──────────────────────────────────


class AlertStatusEnum(StrEnum):
    """Urgency tier for cycles that are still in the water."""

    normal = "normal"
    nearing = "nearing"
    overdue = "overdue"


class SeverityEnum(StrEnum):
    """Confirmation step severity, ordered from least to most consequential."""

    warning = "warning"
    critical = "critical"
    blocking = "blocking"


class PipelineStageEnum(StrEnum):
    """Post-harvest stages, in pipeline order."""

    drying = "drying"
    bagging = "bagging"
    stock = "stock"
    export = "export"


class SortDirectionEnum(StrEnum):
    ascending = "ascending"
    descending = "descending"
