"""Cycle age and harvest-alert derivation.

Both thresholds are compared with a strict ``>``: a cycle planted exactly
``cycle_duration_days`` ago is still ``nearing`` (not ``overdue``), and one
planted exactly ``cycle_duration_days - nearing_harvest_days`` ago is still
``normal``. Alerts fire from the day after each threshold.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime

from app.config import Settings, get_settings
from app.models.enums import AlertStatusEnum, CycleStatusEnum
from app.schemas.records import CultivationCycleRecord

_ALERTABLE_STATUSES = frozenset({CycleStatusEnum.PLANTED, CycleStatusEnum.GROWING})


@dataclass(frozen=True)
class LifecyclePolicy:
	cycle_duration_days: int = 45
	nearing_harvest_days: int = 7

	@classmethod
	def from_settings(cls, settings: Settings | None = None) -> LifecyclePolicy:
		settings = settings or get_settings()
		return cls(
			cycle_duration_days=settings.cycle_duration_days,
			nearing_harvest_days=settings.nearing_harvest_days,
		)


@dataclass(frozen=True)
class LifecycleState:
	age: int
	alert_status: AlertStatusEnum


def as_day(value: date | datetime) -> date:
	"""Normalize to a calendar day (midnight), dropping any time-of-day."""
	if isinstance(value, datetime):
		return value.date()
	return value


def days_between(start: date | datetime, end: date | datetime) -> float:
	"""Elapsed days between two instants, keeping sub-day precision for datetimes."""
	if isinstance(start, datetime) and isinstance(end, datetime):
		return (end - start).total_seconds() / 86400.0
	return float((as_day(end) - as_day(start)).days)


def cycle_age(cycle: CultivationCycleRecord, today: date | datetime) -> int:
	end = cycle.harvest_date if cycle.harvest_date is not None else today
	return math.ceil(days_between(as_day(cycle.planting_date), as_day(end)))


def alert_status(
	cycle: CultivationCycleRecord,
	today: date | datetime,
	policy: LifecyclePolicy,
) -> AlertStatusEnum:
	if cycle.status not in _ALERTABLE_STATUSES:
		return AlertStatusEnum.normal

	days_since_planting = days_between(as_day(cycle.planting_date), as_day(today))
	if days_since_planting > policy.cycle_duration_days:
		return AlertStatusEnum.overdue
	if days_since_planting > policy.cycle_duration_days - policy.nearing_harvest_days:
		return AlertStatusEnum.nearing
	return AlertStatusEnum.normal


def resolve_lifecycle_state(
	cycle: CultivationCycleRecord,
	today: date | datetime,
	policy: LifecyclePolicy | None = None,
) -> LifecycleState:
	policy = policy or LifecyclePolicy()
	return LifecycleState(
		age=cycle_age(cycle, today),
		alert_status=alert_status(cycle, today, policy),
	)
