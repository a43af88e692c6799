"""Cascade-impact analysis for deleting a cutting operation.

Deleting an operation removes every cycle it originated and, with them, any
harvest / drying / bagging / stock / export data already recorded. The
analysis counts those downstream artifacts and turns them into an ordered
confirmation plan whose severity rises down the pipeline.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from app.models.enums import CycleStatusEnum, SeverityEnum
from app.schemas.records import CultivationCycleRecord, CuttingOperationRecord

COUNT_TOKEN = "{count}"


class ImpactSummary(BaseModel):
	model_config = ConfigDict(frozen=True)

	total_cycles: int = 0
	planted: int = 0
	growing: int = 0
	harvested: int = 0
	dried: int = 0
	bagged: int = 0
	in_stock: int = 0
	exported: int = 0
	has_harvested_data: bool = False
	has_dried_data: bool = False
	has_bagged_data: bool = False
	has_stock_data: bool = False
	has_export_data: bool = False

	@property
	def is_empty(self) -> bool:
		return self.total_cycles == 0


class ConfirmationStep(BaseModel):
	model_config = ConfigDict(frozen=True)

	category: str
	title_key: str
	message_key: str
	severity: SeverityEnum
	count: int | None = None


# (category, summary count field, has-flag field, title key, message key, severity)
_DOWNSTREAM_STEPS: tuple[tuple[str, str, str, str, str, SeverityEnum], ...] = (
	("harvest", "harvested", "has_harvested_data", "confirmDeleteHarvestData", "confirmDeleteHarvestDataMessage", SeverityEnum.warning),
	("drying", "dried", "has_dried_data", "confirmDeleteDryingData", "confirmDeleteDryingDataMessage", SeverityEnum.warning),
	("bagging", "bagged", "has_bagged_data", "confirmDeleteBaggingData", "confirmDeleteBaggingDataMessage", SeverityEnum.critical),
	("stock", "in_stock", "has_stock_data", "confirmDeleteStockData", "confirmDeleteStockDataMessage", SeverityEnum.blocking),
	("export", "exported", "has_export_data", "confirmDeleteExportData", "confirmDeleteExportDataMessage", SeverityEnum.blocking),
)

BASE_STEP = ConfirmationStep(
	category="base",
	title_key="confirmDeleteCuttingOperation",
	message_key="confirmDeleteCuttingOperationMessage",
	severity=SeverityEnum.warning,
)


def related_cycles_for_operation(
	operation: CuttingOperationRecord | None,
	cycles: Iterable[CultivationCycleRecord],
) -> list[CultivationCycleRecord]:
	"""Cycles originated by ``operation``.

	Linked cycles match on ``cutting_operation_id``; unlinked (legacy) cycles
	match when their module is one the operation cut.
	"""
	if operation is None:
		return []
	module_ids = operation.cut_module_ids
	related: list[CultivationCycleRecord] = []
	for cycle in cycles:
		if cycle.cutting_operation_id is not None:
			if cycle.cutting_operation_id == operation.id:
				related.append(cycle)
		elif cycle.module_id in module_ids:
			related.append(cycle)
	return related


def analyze_impact(
	operation: CuttingOperationRecord | None,
	related_cycles: Sequence[CultivationCycleRecord],
) -> ImpactSummary:
	if operation is None or not related_cycles:
		return ImpactSummary()

	harvested = sum(1 for c in related_cycles if c.harvest_date is not None)
	dried = sum(1 for c in related_cycles if c.drying_completion_date is not None)
	bagged = sum(1 for c in related_cycles if c.bagged_date is not None)
	in_stock = sum(1 for c in related_cycles if c.stock_date is not None)
	exported = sum(1 for c in related_cycles if c.export_date is not None)

	return ImpactSummary(
		total_cycles=len(related_cycles),
		planted=sum(1 for c in related_cycles if c.status == CycleStatusEnum.PLANTED),
		growing=sum(1 for c in related_cycles if c.status == CycleStatusEnum.GROWING),
		harvested=harvested,
		dried=dried,
		bagged=bagged,
		in_stock=in_stock,
		exported=exported,
		has_harvested_data=harvested > 0,
		has_dried_data=dried > 0,
		has_bagged_data=bagged > 0,
		has_stock_data=in_stock > 0,
		has_export_data=exported > 0,
	)


def build_confirmation_steps(summary: ImpactSummary) -> list[ConfirmationStep]:
	steps = [BASE_STEP]
	for category, count_field, flag_field, title_key, message_key, severity in _DOWNSTREAM_STEPS:
		if not getattr(summary, flag_field):
			continue
		steps.append(
			ConfirmationStep(
				category=category,
				title_key=title_key,
				message_key=message_key,
				severity=severity,
				count=getattr(summary, count_field),
			)
		)
	return steps


def render_step_message(template: str, step: ConfirmationStep) -> str:
	"""Substitute the step count into a localized message template."""
	if step.count is None:
		return template
	return template.replace(COUNT_TOKEN, str(step.count))
