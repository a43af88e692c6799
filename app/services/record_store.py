"""PostgreSQL-backed record store for cycles, cutting operations and modules."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.cultivation import CultivationCycle, CuttingOperation
from app.models.sites import Farmer, Module, SeaweedType, SiteObservation
from app.schemas.records import (
	CultivationCycleRecord,
	CuttingOperationRecord,
	FarmerRecord,
	ModuleRecord,
	SeaweedTypeRecord,
	SiteObservationRecord,
)
from app.services.impact import related_cycles_for_operation

_logger = logging.getLogger("kelpflow.record_store")


class RecordStore:
	"""Reads return frozen record snapshots; writes take records back."""

	def __init__(self, db: AsyncSession):
		self.db = db

	# ── Reads ────────────────────────────────────────────────────────────

	async def list_cultivation_cycles(self) -> list[CultivationCycleRecord]:
		rows = await self.db.execute(select(CultivationCycle).order_by(CultivationCycle.planting_date.desc()))
		return [CultivationCycleRecord.model_validate(row) for row in rows.scalars().all()]

	async def list_cutting_operations(self) -> list[CuttingOperationRecord]:
		rows = await self.db.execute(select(CuttingOperation).order_by(CuttingOperation.operation_date.desc()))
		return [CuttingOperationRecord.model_validate(row) for row in rows.scalars().all()]

	async def list_modules(self) -> list[ModuleRecord]:
		rows = await self.db.execute(select(Module).order_by(Module.code.asc()))
		return [ModuleRecord.model_validate(row) for row in rows.scalars().all()]

	async def list_seaweed_types(self) -> list[SeaweedTypeRecord]:
		rows = await self.db.execute(select(SeaweedType).order_by(SeaweedType.name.asc()))
		return [SeaweedTypeRecord.model_validate(row) for row in rows.scalars().all()]

	async def list_farmers(self) -> list[FarmerRecord]:
		rows = await self.db.execute(select(Farmer))
		return [FarmerRecord.model_validate(row) for row in rows.scalars().all()]

	async def list_site_observations(self, site_id: uuid.UUID) -> list[SiteObservationRecord]:
		"""Observations for one site, newest first."""
		stmt = (
			select(SiteObservation)
			.where(SiteObservation.site_id == site_id)
			.order_by(SiteObservation.observed_on.desc())
		)
		rows = await self.db.execute(stmt)
		return [SiteObservationRecord.model_validate(row) for row in rows.scalars().all()]

	async def get_cultivation_cycle(self, cycle_id: uuid.UUID) -> CultivationCycleRecord:
		return CultivationCycleRecord.model_validate(await self._require_cycle(cycle_id))

	async def get_cutting_operation(self, operation_id: uuid.UUID) -> CuttingOperationRecord:
		return CuttingOperationRecord.model_validate(await self._require_operation(operation_id))

	async def get_module(self, module_id: uuid.UUID) -> ModuleRecord:
		return ModuleRecord.model_validate(await self._require_module(module_id))

	# ── Writes ───────────────────────────────────────────────────────────

	async def create_cutting_operation(self, record: CuttingOperationRecord) -> CuttingOperationRecord:
		payload = record.model_dump()
		payload["module_cuts"] = [cut.model_dump(mode="json") for cut in record.module_cuts]
		row = CuttingOperation(**payload)
		self.db.add(row)
		await self.db.flush()
		return record

	async def create_cultivation_cycle(self, record: CultivationCycleRecord) -> CultivationCycleRecord:
		self.db.add(CultivationCycle(**record.model_dump()))
		await self.db.flush()
		return record

	async def update_cultivation_cycle(self, record: CultivationCycleRecord) -> CultivationCycleRecord:
		row = await self._require_cycle(record.id)
		for field, value in record.model_dump(exclude={"id"}).items():
			setattr(row, field, value)
		await self.db.flush()
		return record

	async def update_module(self, record: ModuleRecord) -> ModuleRecord:
		row = await self._require_module(record.id)
		row.farmer_id = record.farmer_id
		row.status_history = [entry.model_dump(mode="json") for entry in record.status_history]
		await self.db.flush()
		return record

	async def delete_cultivation_cycle(self, cycle_id: uuid.UUID) -> None:
		await self._require_cycle(cycle_id)
		await self.db.execute(delete(CultivationCycle).where(CultivationCycle.id == cycle_id))
		await self.db.flush()

	async def delete_cutting_operation(self, operation_id: uuid.UUID) -> int:
		"""Delete an operation and every cycle it originated; returns the cycle count."""
		operation = await self.get_cutting_operation(operation_id)
		related = related_cycles_for_operation(operation, await self.list_cultivation_cycles())
		cycle_ids = [cycle.id for cycle in related]
		if cycle_ids:
			await self.db.execute(delete(CultivationCycle).where(CultivationCycle.id.in_(cycle_ids)))
		await self.db.execute(delete(CuttingOperation).where(CuttingOperation.id == operation_id))
		await self.db.flush()
		_logger.info(
			"cutting_operation_deleted",
			extra={"operation_id": str(operation_id), "cycles_deleted": len(cycle_ids)},
		)
		return len(cycle_ids)

	# ── Helpers ──────────────────────────────────────────────────────────

	async def _require_cycle(self, cycle_id: uuid.UUID) -> CultivationCycle:
		row = await self.db.execute(select(CultivationCycle).where(CultivationCycle.id == cycle_id))
		cycle = row.scalar_one_or_none()
		if cycle is None:
			raise LookupError(f"Cultivation cycle {cycle_id} not found")
		return cycle

	async def _require_operation(self, operation_id: uuid.UUID) -> CuttingOperation:
		row = await self.db.execute(select(CuttingOperation).where(CuttingOperation.id == operation_id))
		operation = row.scalar_one_or_none()
		if operation is None:
			raise LookupError(f"Cutting operation {operation_id} not found")
		return operation

	async def _require_module(self, module_id: uuid.UUID) -> Module:
		row = await self.db.execute(select(Module).where(Module.id == module_id))
		module = row.scalar_one_or_none()
		if module is None:
			raise LookupError(f"Module {module_id} not found")
		return module
