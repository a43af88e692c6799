"""Immutable record snapshots exchanged between the record store and the core.

Every model here is frozen: derivations read them, writers produce updated
copies with ``model_copy(update=...)``.
"""

from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import CycleStatusEnum, ModuleStatusEnum


class _Record(BaseModel):
	model_config = ConfigDict(from_attributes=True, frozen=True)


class ModuleCut(_Record):
	module_id: uuid.UUID
	lines_cut: float = Field(ge=0)


class CuttingOperationRecord(_Record):
	id: uuid.UUID
	operation_date: date
	site_id: uuid.UUID
	service_provider_id: uuid.UUID | None = None
	module_cuts: list[ModuleCut] = Field(default_factory=list)
	unit_price: float = 0.0
	total_amount: float = 0.0
	is_paid: bool = False
	notes: str | None = None
	seaweed_type_id: uuid.UUID | None = None

	@field_validator("module_cuts")
	@classmethod
	def _unique_modules(cls, value: list[ModuleCut]) -> list[ModuleCut]:
		seen: set[uuid.UUID] = set()
		for cut in value:
			if cut.module_id in seen:
				raise ValueError(f"module {cut.module_id} is cut more than once in the same operation")
			seen.add(cut.module_id)
		return value

	@property
	def cut_module_ids(self) -> set[uuid.UUID]:
		return {cut.module_id for cut in self.module_cuts}


class CultivationCycleRecord(_Record):
	id: uuid.UUID
	module_id: uuid.UUID
	seaweed_type_id: uuid.UUID
	planting_date: date
	status: CycleStatusEnum = CycleStatusEnum.PLANTED
	initial_weight: float | None = None
	lines_planted: float | None = None
	cutting_operation_id: uuid.UUID | None = None

	harvest_date: date | None = None
	harvested_weight: float | None = None
	lines_harvested: float | None = None
	cuttings_taken_at_harvest_kg: float | None = None

	drying_completion_date: date | None = None
	bagged_date: date | None = None
	stock_date: date | None = None
	export_date: date | None = None

	processing_notes: str | None = None


class StatusHistoryEntry(_Record):
	model_config = ConfigDict(from_attributes=True, frozen=True, extra="allow")

	status: str
	changed_on: date | None = None


class ModuleRecord(_Record):
	id: uuid.UUID
	code: str
	site_id: uuid.UUID
	zone_id: uuid.UUID | None = None
	farmer_id: uuid.UUID | None = None
	lines: int = 0
	status_history: list[StatusHistoryEntry] = Field(default_factory=list)

	@property
	def current_status(self) -> str:
		if not self.status_history:
			return ModuleStatusEnum.FREE.value
		return self.status_history[-1].status

	@property
	def is_free(self) -> bool:
		return self.current_status == ModuleStatusEnum.FREE.value


class SeaweedTypeRecord(_Record):
	id: uuid.UUID
	name: str


class FarmerRecord(_Record):
	id: uuid.UUID
	first_name: str
	last_name: str

	@property
	def full_name(self) -> str:
		return f"{self.first_name} {self.last_name}"


class SiteObservationRecord(_Record):
	id: uuid.UUID
	site_id: uuid.UUID
	observed_on: date
	temperature_c: float | None = None
	salinity_ppt: float | None = None
	ph: float | None = None
	notes: str | None = None
