"""Cultivation-cycle listing, export and stage-advancing operations."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import PipelineStageEnum
from app.schemas.cultivation import HarvestCreate, PlantingCreate
from app.schemas.records import CultivationCycleRecord, ModuleRecord
from app.services import pipeline
from app.services.cycle_listing import (
	CycleFilters,
	CycleInfo,
	CycleSort,
	build_cycle_infos,
	list_cycle_infos,
)
from app.services.export_rows import (
	build_export_rows,
	column_spec,
	export_filename,
	identity_translate,
)
from app.services.lifecycle import LifecyclePolicy
from app.services.record_store import RecordStore


def _today() -> date:
	return datetime.now(UTC).date()


class CycleService:
	def __init__(self, db: AsyncSession, policy: LifecyclePolicy | None = None):
		self.db = db
		self.store = RecordStore(db)
		self.policy = policy or LifecyclePolicy.from_settings()

	async def load_cycle_infos(self, today: date | None = None) -> list[CycleInfo]:
		return build_cycle_infos(
			await self.store.list_cultivation_cycles(),
			await self.store.list_modules(),
			await self.store.list_seaweed_types(),
			await self.store.list_farmers(),
			today=today or _today(),
			policy=self.policy,
		)

	async def list_cycles(
		self,
		filters: CycleFilters,
		sort: CycleSort,
		today: date | None = None,
	) -> list[CycleInfo]:
		return list_cycle_infos(await self.load_cycle_infos(today), filters, sort)

	async def get_cycle_info(self, cycle_id: uuid.UUID, today: date | None = None) -> CycleInfo:
		for info in await self.load_cycle_infos(today):
			if info.cycle.id == cycle_id:
				return info
		raise LookupError(f"Cultivation cycle {cycle_id} not found")

	async def export_cycles(
		self,
		filters: CycleFilters,
		sort: CycleSort,
		translate: Callable[[str], str] | None = None,
	) -> dict[str, Any]:
		today = _today()
		infos = await self.list_cycles(filters, sort, today)
		translate = translate or identity_translate
		return {
			"filename": export_filename(today),
			"columns": column_spec(translate),
			"rows": build_export_rows(infos, translate),
		}

	async def harvest_defaults(self, cycle_id: uuid.UUID) -> dict[str, Any]:
		cycle = await self.store.get_cultivation_cycle(cycle_id)
		module = await self._optional_module(cycle.module_id)
		return pipeline.harvest_defaults(cycle, module, self.policy)

	async def record_harvest(self, cycle_id: uuid.UUID, payload: HarvestCreate) -> CultivationCycleRecord:
		cycle = await self.store.get_cultivation_cycle(cycle_id)
		return await self.store.update_cultivation_cycle(pipeline.record_harvest(cycle, payload))

	async def mark_growing(self, cycle_id: uuid.UUID) -> CultivationCycleRecord:
		cycle = await self.store.get_cultivation_cycle(cycle_id)
		return await self.store.update_cultivation_cycle(pipeline.mark_growing(cycle))

	async def advance_stage(
		self,
		cycle_id: uuid.UUID,
		stage: PipelineStageEnum,
		on: date,
	) -> CultivationCycleRecord:
		cycle = await self.store.get_cultivation_cycle(cycle_id)
		return await self.store.update_cultivation_cycle(pipeline.advance_stage(cycle, stage, on))

	async def delete_cycle(self, cycle_id: uuid.UUID) -> None:
		await self.store.delete_cultivation_cycle(cycle_id)

	async def free_modules(self, site_id: uuid.UUID, zone_id: uuid.UUID | None = None) -> list[ModuleRecord]:
		return pipeline.free_modules(await self.store.list_modules(), site_id, zone_id)

	async def plant(self, payload: PlantingCreate) -> pipeline.PlantingPlan:
		module = await self.store.get_module(payload.module_id)
		plan = pipeline.build_planting(payload, module)
		await self.store.create_cutting_operation(plan.operation)
		await self.store.create_cultivation_cycle(plan.cycle)
		await self.store.update_module(plan.module)
		return plan

	async def _optional_module(self, module_id: uuid.UUID) -> ModuleRecord | None:
		try:
			return await self.store.get_module(module_id)
		except LookupError:
			return None
