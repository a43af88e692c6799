"""Pydantic request/response schemas for cultivation cycles and cutting operations."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel, Field, model_validator

from app.models.enums import AlertStatusEnum, SortDirectionEnum
from app.schemas.records import (
	CultivationCycleRecord,
	CuttingOperationRecord,
	FarmerRecord,
	ModuleRecord,
	SeaweedTypeRecord,
)
from app.services.impact import ConfirmationStep, ImpactSummary

OTHER_HARVEST_NOTE = "Other"
DEFAULT_HARVEST_NOTE = "Harvest for maturity"


# ── Requests ────────────────────────────────────────────────────────────────


class HarvestCreate(BaseModel):
	harvest_date: date
	notes: str = Field(default=DEFAULT_HARVEST_NOTE, min_length=1, max_length=255)
	custom_note: str | None = Field(default=None, max_length=2048)
	lines_harvested: float = Field(gt=0)
	harvested_weight: float = Field(gt=0)
	cuttings_weight: float = Field(ge=0)

	@model_validator(mode="after")
	def _validate_custom_note(self) -> "HarvestCreate":
		if self.notes == OTHER_HARVEST_NOTE and not (self.custom_note or "").strip():
			raise ValueError("custom_note is required when notes is 'Other'")
		return self

	@property
	def final_note(self) -> str:
		if self.notes == OTHER_HARVEST_NOTE:
			return (self.custom_note or "").strip()
		return self.notes


class StageAdvance(BaseModel):
	on: date


class PlantingCreate(BaseModel):
	service_provider_id: uuid.UUID
	site_id: uuid.UUID
	zone_id: uuid.UUID
	module_id: uuid.UUID
	beneficiary_farmer_id: uuid.UUID
	seaweed_type_id: uuid.UUID
	operation_date: date
	planting_date: date
	lines: float = Field(gt=0)
	initial_weight: float = Field(gt=0)
	price_per_line: float = Field(ge=0)


# ── Responses ───────────────────────────────────────────────────────────────


class CycleInfoRead(BaseModel):
	cycle: CultivationCycleRecord
	module: ModuleRecord | None = None
	seaweed_type: SeaweedTypeRecord | None = None
	farmer: FarmerRecord | None = None
	alert_status: AlertStatusEnum
	growth_rate: float | None = None
	age: int


class CycleListRead(BaseModel):
	sort_key: str
	direction: SortDirectionEnum
	filters: dict[str, str]
	items: list[CycleInfoRead] = Field(default_factory=list)


class CycleExportRead(BaseModel):
	filename: str
	columns: list[dict[str, Any]]
	rows: list[dict[str, Any]] = Field(default_factory=list)


class HarvestDefaultsRead(BaseModel):
	cycle_id: uuid.UUID
	harvest_date: date
	notes: str
	lines_harvested: float | None = None


class PlantingRead(BaseModel):
	operation: CuttingOperationRecord
	cycle: CultivationCycleRecord
	module: ModuleRecord


class ImpactRead(BaseModel):
	operation_id: uuid.UUID
	summary: ImpactSummary
	steps: list[ConfirmationStep] = Field(default_factory=list)


class DeletionWorkflowRead(BaseModel):
	operation_id: uuid.UUID
	index: int
	step_count: int
	progress_percent: float
	current_step: ConfirmationStep | None = None
	is_last_step: bool
	confirmed: bool = False
	cancelled: bool = False
	summary: ImpactSummary
