"""Specific growth rate (SGR) and harvest weight metrics."""

from __future__ import annotations

import math

from app.schemas.records import CultivationCycleRecord
from app.services.lifecycle import days_between


def specific_growth_rate(
	initial_weight: float | None,
	final_weight: float | None,
	duration_days: float | None,
) -> float | None:
	"""Average relative growth per day, in percent.

	``SGR = (ln(final) - ln(initial)) / days * 100``. Returns ``None`` when any
	input is missing or not strictly positive; callers must treat ``None`` as
	"metric unavailable", never as zero growth.
	"""
	if initial_weight is None or final_weight is None or duration_days is None:
		return None
	if initial_weight <= 0 or final_weight <= 0 or duration_days <= 0:
		return None
	if final_weight == initial_weight:
		return 0.0
	return (math.log(final_weight) - math.log(initial_weight)) / duration_days * 100.0


def cycle_growth_rate(cycle: CultivationCycleRecord) -> float | None:
	if cycle.harvest_date is None:
		return None
	if not cycle.harvested_weight or not cycle.initial_weight:
		return None
	duration = days_between(cycle.planting_date, cycle.harvest_date)
	return specific_growth_rate(cycle.initial_weight, cycle.harvested_weight, duration)


def net_weight(cycle: CultivationCycleRecord) -> float:
	"""Wet production: harvested weight minus cuttings kept back for replanting."""
	return (cycle.harvested_weight or 0.0) - (cycle.cuttings_taken_at_harvest_kg or 0.0)


def format_growth_rate(rate: float | None) -> str:
	if rate is None:
		return "-"
	return f"{rate:.2f}%"
