"""Joined, enriched cultivation-cycle listing.

Every call recomputes from the snapshots it is given; nothing is cached, so
changing a filter and changing it back always yields the original set.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.enums import AlertStatusEnum, SortDirectionEnum
from app.schemas.records import (
	CultivationCycleRecord,
	FarmerRecord,
	ModuleRecord,
	SeaweedTypeRecord,
)
from app.services.growth import cycle_growth_rate
from app.services.lifecycle import LifecyclePolicy, resolve_lifecycle_state
from app.services.sort_filter import (
	ALL_SENTINEL,
	KeyAccessors,
	filter_records,
	sort_records,
	toggle_direction,
)

DEFAULT_SORT_KEY = "module.code"


class CycleInfo(BaseModel):
	model_config = ConfigDict(frozen=True)

	cycle: CultivationCycleRecord
	module: ModuleRecord | None = None
	seaweed_type: SeaweedTypeRecord | None = None
	farmer: FarmerRecord | None = None
	alert_status: AlertStatusEnum = AlertStatusEnum.normal
	growth_rate: float | None = None
	age: int = 0


class CycleFilters(BaseModel):
	model_config = ConfigDict(frozen=True)

	site_id: str = ALL_SENTINEL
	seaweed_type_id: str = ALL_SENTINEL

	@field_validator("site_id", "seaweed_type_id", mode="before")
	@classmethod
	def _canonical_id(cls, value: object) -> str:
		if value is None or str(value).strip().lower() == ALL_SENTINEL:
			return ALL_SENTINEL
		return str(uuid.UUID(str(value).strip()))


class CycleSort(BaseModel):
	model_config = ConfigDict(frozen=True)

	key: str = DEFAULT_SORT_KEY
	direction: SortDirectionEnum = SortDirectionEnum.ascending

	def toggled(self, key: str) -> CycleSort:
		return CycleSort(key=key, direction=toggle_direction(self.key, self.direction, key))


CYCLE_FILTER_DIMENSIONS = {
	"site_id": lambda info: info.module.site_id if info.module is not None else None,
	"seaweed_type_id": lambda info: info.cycle.seaweed_type_id,
}

CYCLE_ACCESSORS = KeyAccessors(primary_field="cycle")


def enrich_cycle(
	cycle: CultivationCycleRecord,
	*,
	today: date,
	policy: LifecyclePolicy,
	modules: dict[uuid.UUID, ModuleRecord],
	seaweed_types: dict[uuid.UUID, SeaweedTypeRecord],
	farmers: dict[uuid.UUID, FarmerRecord],
) -> CycleInfo:
	state = resolve_lifecycle_state(cycle, today, policy)
	module = modules.get(cycle.module_id)
	farmer = farmers.get(module.farmer_id) if module is not None and module.farmer_id is not None else None
	return CycleInfo(
		cycle=cycle,
		module=module,
		seaweed_type=seaweed_types.get(cycle.seaweed_type_id),
		farmer=farmer,
		alert_status=state.alert_status,
		growth_rate=cycle_growth_rate(cycle),
		age=state.age,
	)


def build_cycle_infos(
	cycles: Sequence[CultivationCycleRecord],
	modules: Sequence[ModuleRecord],
	seaweed_types: Sequence[SeaweedTypeRecord],
	farmers: Sequence[FarmerRecord],
	*,
	today: date,
	policy: LifecyclePolicy | None = None,
) -> list[CycleInfo]:
	policy = policy or LifecyclePolicy()
	module_index = {module.id: module for module in modules}
	seaweed_index = {seaweed.id: seaweed for seaweed in seaweed_types}
	farmer_index = {farmer.id: farmer for farmer in farmers}
	return [
		enrich_cycle(
			cycle,
			today=today,
			policy=policy,
			modules=module_index,
			seaweed_types=seaweed_index,
			farmers=farmer_index,
		)
		for cycle in cycles
	]


def list_cycle_infos(
	infos: Sequence[CycleInfo],
	filters: CycleFilters | None = None,
	sort: CycleSort | None = None,
) -> list[CycleInfo]:
	filters = filters or CycleFilters()
	sort = sort or CycleSort()
	selected = filter_records(infos, filters.model_dump(), CYCLE_FILTER_DIMENSIONS)
	return sort_records(selected, sort.key, sort.direction, CYCLE_ACCESSORS)
