from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest

from app.config import Settings
from app.models.enums import AlertStatusEnum, CycleStatusEnum
from app.services.lifecycle import (
	LifecyclePolicy,
	alert_status,
	cycle_age,
	days_between,
	resolve_lifecycle_state,
)

POLICY = LifecyclePolicy(cycle_duration_days=45, nearing_harvest_days=7)


@pytest.mark.parametrize(
	"status",
	[
		CycleStatusEnum.HARVESTED,
		CycleStatusEnum.DRIED,
		CycleStatusEnum.BAGGED,
		CycleStatusEnum.IN_STOCK,
		CycleStatusEnum.EXPORTED,
	],
)
def test_out_of_water_cycles_are_always_normal(make_cycle, today: date, status: CycleStatusEnum) -> None:
	cycle = make_cycle(status=status, planting_date=today - timedelta(days=400))
	assert alert_status(cycle, today, POLICY) == AlertStatusEnum.normal


def test_exactly_cycle_duration_is_nearing_not_overdue(make_cycle, today: date) -> None:
	cycle = make_cycle(planting_date=today - timedelta(days=45))
	assert alert_status(cycle, today, POLICY) == AlertStatusEnum.nearing


def test_day_after_cycle_duration_is_overdue(make_cycle, today: date) -> None:
	cycle = make_cycle(status=CycleStatusEnum.GROWING, planting_date=today - timedelta(days=46))
	assert alert_status(cycle, today, POLICY) == AlertStatusEnum.overdue


def test_nearing_threshold_is_strict(make_cycle, today: date) -> None:
	on_threshold = make_cycle(planting_date=today - timedelta(days=38))
	past_threshold = make_cycle(planting_date=today - timedelta(days=39))
	assert alert_status(on_threshold, today, POLICY) == AlertStatusEnum.normal
	assert alert_status(past_threshold, today, POLICY) == AlertStatusEnum.nearing


def test_zero_nearing_window_goes_straight_to_overdue(make_cycle, today: date) -> None:
	policy = LifecyclePolicy(cycle_duration_days=45, nearing_harvest_days=0)
	assert alert_status(make_cycle(planting_date=today - timedelta(days=45)), today, policy) == AlertStatusEnum.normal
	assert alert_status(make_cycle(planting_date=today - timedelta(days=46)), today, policy) == AlertStatusEnum.overdue


def test_time_of_day_is_ignored_for_alerts(make_cycle) -> None:
	cycle = make_cycle(planting_date=date(2026, 1, 1))
	late_evening = datetime(2026, 2, 15, 23, 59, tzinfo=UTC)
	assert alert_status(cycle, late_evening, POLICY) == AlertStatusEnum.nearing


def test_age_counts_to_today_while_in_water(make_cycle, today: date) -> None:
	cycle = make_cycle(planting_date=today - timedelta(days=12))
	assert cycle_age(cycle, today) == 12


def test_age_stops_at_harvest_date(make_cycle, today: date) -> None:
	cycle = make_cycle(
		status=CycleStatusEnum.HARVESTED,
		planting_date=date(2026, 3, 1),
		harvest_date=date(2026, 4, 10),
	)
	assert cycle_age(cycle, today) == 40


def test_days_between_keeps_sub_day_precision_for_datetimes() -> None:
	start = datetime(2026, 1, 1, 0, 0, tzinfo=UTC)
	end = datetime(2026, 1, 2, 12, 0, tzinfo=UTC)
	assert days_between(start, end) == pytest.approx(1.5)
	assert days_between(date(2026, 1, 1), end) == 1.0


def test_resolve_lifecycle_state_combines_age_and_alert(make_cycle, today: date) -> None:
	cycle = make_cycle(planting_date=today - timedelta(days=50))
	state = resolve_lifecycle_state(cycle, today, POLICY)
	assert state.age == 50
	assert state.alert_status == AlertStatusEnum.overdue


def test_policy_from_settings_reads_thresholds() -> None:
	settings = Settings(cycle_duration_days=60, nearing_harvest_days=10)
	assert LifecyclePolicy.from_settings(settings) == LifecyclePolicy(cycle_duration_days=60, nearing_harvest_days=10)
