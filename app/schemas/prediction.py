"""Harvest prediction payloads and per-cycle prediction slots."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.config import Language
from app.schemas.records import (
	CultivationCycleRecord,
	ModuleRecord,
	SeaweedTypeRecord,
	SiteObservationRecord,
)

PREDICTION_ERROR_KEY = "predictionError"


class PredictionInputs(BaseModel):
	model_config = ConfigDict(frozen=True)

	cycle: CultivationCycleRecord
	module: ModuleRecord
	seaweed_type: SeaweedTypeRecord
	historical_cycles: list[CultivationCycleRecord] = Field(default_factory=list)
	site_observations: list[SiteObservationRecord] = Field(default_factory=list)
	language: Language = Language.en


class PredictionResult(BaseModel):
	model_config = ConfigDict(frozen=True)

	predicted_harvest_date: date | None = None
	predicted_yield_kg: float | None = Field(default=None, ge=0)
	confidence: float = Field(default=0.0, ge=0.0, le=1.0)
	summary: str = ""
	factors: list[str] = Field(default_factory=list)


class PredictionSlot(BaseModel):
	model_config = ConfigDict(frozen=True)

	loading: bool = False
	result: PredictionResult | None = None
	error: str | None = None
	token: int = 0


class PredictionSlotRead(BaseModel):
	cycle_id: uuid.UUID
	loading: bool
	result: PredictionResult | None = None
	error: str | None = None

	@classmethod
	def from_slot(cls, cycle_id: uuid.UUID, slot: PredictionSlot) -> "PredictionSlotRead":
		return cls(cycle_id=cycle_id, loading=slot.loading, result=slot.result, error=slot.error)


class PredictionRequest(BaseModel):
	language: Language | None = None

	def resolved_language(self, default: Language) -> Language:
		return self.language or default


def serialize_inputs(inputs: PredictionInputs) -> dict[str, Any]:
	return inputs.model_dump(mode="json")
