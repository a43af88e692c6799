"""Row and column payloads handed to the spreadsheet export collaborator."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.services.cycle_listing import CycleInfo
from app.services.growth import format_growth_rate, net_weight

Translate = Callable[[str], str]


class ExportColumn(BaseModel):
	model_config = ConfigDict(frozen=True)

	header_key: str
	key: str
	width: int
	unit: str | None = None


EXPORT_COLUMNS: tuple[ExportColumn, ...] = (
	ExportColumn(header_key="moduleCode", key="module_code", width=15),
	ExportColumn(header_key="farmer", key="farmer_name", width=20),
	ExportColumn(header_key="seaweedType", key="seaweed_type", width=15),
	ExportColumn(header_key="plantingDate", key="planting_date", width=15),
	ExportColumn(header_key="initialWeight", key="initial_weight", width=15, unit="Kg"),
	ExportColumn(header_key="linesPlanted", key="lines_planted", width=15),
	ExportColumn(header_key="ageInDays", key="age", width=10),
	ExportColumn(header_key="status", key="status", width=15),
	ExportColumn(header_key="harvestDate", key="harvest_date", width=15),
	ExportColumn(header_key="harvestedWeight", key="harvested_weight", width=15, unit="Kg"),
	ExportColumn(header_key="cuttingsWeightKg", key="cuttings_weight", width=15, unit="Kg"),
	ExportColumn(header_key="wetProduction", key="net_weight", width=15, unit="Kg"),
	ExportColumn(header_key="linesHarvested", key="lines_harvested", width=15),
	ExportColumn(header_key="growthRate", key="growth_rate", width=15),
	ExportColumn(header_key="notes", key="notes", width=30),
)


def identity_translate(key: str) -> str:
	return key


def column_spec(translate: Translate = identity_translate) -> list[dict[str, Any]]:
	"""Columns as ``{header, key, width}``; units are appended to the header."""
	columns: list[dict[str, Any]] = []
	for column in EXPORT_COLUMNS:
		header = translate(column.header_key)
		if column.unit:
			header = f"{header} ({column.unit})"
		columns.append({"header": header, "key": column.key, "width": column.width})
	return columns


def build_export_row(info: CycleInfo, translate: Translate = identity_translate) -> dict[str, Any]:
	cycle = info.cycle
	unknown = translate("unknown")
	return {
		"module_code": info.module.code if info.module is not None else unknown,
		"farmer_name": info.farmer.full_name if info.farmer is not None else unknown,
		"seaweed_type": info.seaweed_type.name if info.seaweed_type is not None else unknown,
		"planting_date": cycle.planting_date.isoformat(),
		"initial_weight": cycle.initial_weight or 0,
		"lines_planted": cycle.lines_planted or (info.module.lines if info.module is not None else 0),
		"age": info.age,
		"status": translate(f"status_{cycle.status.value}"),
		"harvest_date": cycle.harvest_date.isoformat() if cycle.harvest_date is not None else "-",
		"harvested_weight": cycle.harvested_weight or 0,
		"cuttings_weight": cycle.cuttings_taken_at_harvest_kg or 0,
		"net_weight": net_weight(cycle),
		"lines_harvested": cycle.lines_harvested or 0,
		"growth_rate": format_growth_rate(info.growth_rate),
		"notes": cycle.processing_notes or "",
	}


def build_export_rows(infos: Sequence[CycleInfo], translate: Translate = identity_translate) -> list[dict[str, Any]]:
	return [build_export_row(info, translate) for info in infos]


def export_filename(today: date) -> str:
	return f"CultivationCycles_{today.isoformat()}"
