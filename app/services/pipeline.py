"""Stage-advancing writes: planting, harvest and the post-harvest pipeline.

These are the writers that own the cycle invariants: harvest never precedes
planting, each downstream timestamp requires its predecessor, and ``status``
always names the furthest stage reached. Violations raise ``ValueError``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, timedelta

from app.models.enums import CycleStatusEnum, ModuleStatusEnum, PipelineStageEnum
from app.schemas.cultivation import DEFAULT_HARVEST_NOTE, HarvestCreate, PlantingCreate
from app.schemas.records import (
	CultivationCycleRecord,
	CuttingOperationRecord,
	ModuleCut,
	ModuleRecord,
	StatusHistoryEntry,
)
from app.services.lifecycle import LifecyclePolicy

PLANTING_NOTES_KEY = "notes_plantingOperationForModule"

_IN_WATER = frozenset({CycleStatusEnum.PLANTED, CycleStatusEnum.GROWING})


@dataclass(frozen=True)
class _StageRule:
	field: str
	predecessor: str
	status: CycleStatusEnum


_STAGE_RULES: dict[PipelineStageEnum, _StageRule] = {
	PipelineStageEnum.drying: _StageRule("drying_completion_date", "harvest_date", CycleStatusEnum.DRIED),
	PipelineStageEnum.bagging: _StageRule("bagged_date", "drying_completion_date", CycleStatusEnum.BAGGED),
	PipelineStageEnum.stock: _StageRule("stock_date", "bagged_date", CycleStatusEnum.IN_STOCK),
	PipelineStageEnum.export: _StageRule("export_date", "stock_date", CycleStatusEnum.EXPORTED),
}


def mark_growing(cycle: CultivationCycleRecord) -> CultivationCycleRecord:
	if cycle.status != CycleStatusEnum.PLANTED:
		raise ValueError(f"only PLANTED cycles can start growing (cycle is {cycle.status.value})")
	return cycle.model_copy(update={"status": CycleStatusEnum.GROWING})


def default_harvest_date(cycle: CultivationCycleRecord, policy: LifecyclePolicy) -> date:
	return cycle.planting_date + timedelta(days=policy.cycle_duration_days)


def default_lines_harvested(cycle: CultivationCycleRecord, module: ModuleRecord | None) -> float | None:
	if cycle.lines_planted:
		return cycle.lines_planted
	if module is not None and module.lines:
		return float(module.lines)
	return None


def harvest_defaults(
	cycle: CultivationCycleRecord,
	module: ModuleRecord | None,
	policy: LifecyclePolicy,
) -> dict[str, object]:
	return {
		"cycle_id": cycle.id,
		"harvest_date": default_harvest_date(cycle, policy),
		"notes": DEFAULT_HARVEST_NOTE,
		"lines_harvested": default_lines_harvested(cycle, module),
	}


def record_harvest(cycle: CultivationCycleRecord, payload: HarvestCreate) -> CultivationCycleRecord:
	if cycle.status not in _IN_WATER:
		raise ValueError(f"cycle {cycle.id} is already {cycle.status.value}; only PLANTED or GROWING cycles can be harvested")
	if payload.harvest_date < cycle.planting_date:
		raise ValueError("harvest_date cannot precede planting_date")
	return cycle.model_copy(
		update={
			"status": CycleStatusEnum.HARVESTED,
			"harvest_date": payload.harvest_date,
			"processing_notes": payload.final_note,
			"lines_harvested": payload.lines_harvested,
			"harvested_weight": payload.harvested_weight,
			"cuttings_taken_at_harvest_kg": payload.cuttings_weight,
		}
	)


def advance_stage(
	cycle: CultivationCycleRecord,
	stage: PipelineStageEnum,
	on: date,
) -> CultivationCycleRecord:
	rule = _STAGE_RULES[stage]
	if getattr(cycle, rule.field) is not None:
		raise ValueError(f"cycle {cycle.id} already has {rule.field} set")
	previous = getattr(cycle, rule.predecessor)
	if previous is None:
		raise ValueError(f"{stage.value} requires {rule.predecessor} to be set first")
	if on < previous:
		raise ValueError(f"{rule.field} cannot precede {rule.predecessor}")
	return cycle.model_copy(update={rule.field: on, "status": rule.status})


# ── Planting from cuttings ─────────────────────────────────────────────────


def free_modules(
	modules: list[ModuleRecord],
	site_id: uuid.UUID,
	zone_id: uuid.UUID | None = None,
) -> list[ModuleRecord]:
	return [
		module
		for module in modules
		if module.site_id == site_id
		and (zone_id is None or module.zone_id == zone_id)
		and module.is_free
	]


@dataclass(frozen=True)
class PlantingPlan:
	operation: CuttingOperationRecord
	cycle: CultivationCycleRecord
	module: ModuleRecord


def build_planting(payload: PlantingCreate, module: ModuleRecord) -> PlantingPlan:
	if module.id != payload.module_id:
		raise ValueError("module does not match the planting request")
	if module.site_id != payload.site_id:
		raise ValueError("module does not belong to the selected site")
	if module.zone_id is not None and module.zone_id != payload.zone_id:
		raise ValueError("module does not belong to the selected zone")
	if not module.is_free:
		raise ValueError(f"module {module.code} is not free (current status {module.current_status})")

	operation = CuttingOperationRecord(
		id=uuid.uuid4(),
		operation_date=payload.operation_date,
		site_id=payload.site_id,
		service_provider_id=payload.service_provider_id,
		module_cuts=[ModuleCut(module_id=module.id, lines_cut=payload.lines)],
		unit_price=payload.price_per_line,
		total_amount=payload.lines * payload.price_per_line,
		is_paid=False,
		notes=PLANTING_NOTES_KEY,
		seaweed_type_id=payload.seaweed_type_id,
	)
	cycle = CultivationCycleRecord(
		id=uuid.uuid4(),
		module_id=module.id,
		seaweed_type_id=payload.seaweed_type_id,
		planting_date=payload.planting_date,
		status=CycleStatusEnum.PLANTED,
		initial_weight=payload.initial_weight,
		lines_planted=payload.lines,
		cutting_operation_id=operation.id,
	)
	history_entry = StatusHistoryEntry(
		status=ModuleStatusEnum.PLANTED.value,
		changed_on=payload.planting_date,
		cycle_id=str(cycle.id),
	)
	planted_module = module.model_copy(
		update={
			"farmer_id": payload.beneficiary_farmer_id,
			"status_history": [*module.status_history, history_entry],
		}
	)
	return PlantingPlan(operation=operation, cycle=cycle, module=planted_module)
