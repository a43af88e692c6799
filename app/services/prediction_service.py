"""Per-cycle harvest prediction requests.

Each cycle id owns one slot in ``{loading, result, error}``. Reissuing a
request overwrites the slot with a fresh token; a response is only applied
while its token is still the slot's latest, so a superseded request that
resolves late can never clobber a newer one.
"""

from __future__ import annotations

import itertools
import logging
import uuid
from collections.abc import Sequence

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Language, get_settings
from app.schemas.prediction import (
	PREDICTION_ERROR_KEY,
	PredictionInputs,
	PredictionResult,
	PredictionSlot,
)
from app.schemas.records import CultivationCycleRecord, SiteObservationRecord
from app.services.cycle_listing import CycleInfo
from app.services.cycle_service import CycleService
from app.services.prediction_client import PredictionClient
from app.services.record_store import RecordStore

_logger = logging.getLogger("kelpflow.prediction")


def _slot_key(cycle_id: uuid.UUID) -> str:
	return f"prediction:{cycle_id}:slot"


class PredictionSlotRegistry:
	def __init__(self, redis_client: Redis | None = None, ttl_seconds: int | None = None):
		self.redis_client = redis_client
		self.ttl_seconds = ttl_seconds or get_settings().prediction_slot_ttl_seconds
		self._slots: dict[uuid.UUID, PredictionSlot] = {}
		self._tokens = itertools.count(1)

	async def issue(self, cycle_id: uuid.UUID) -> int:
		token = next(self._tokens)
		slot = PredictionSlot(loading=True, token=token)
		self._slots[cycle_id] = slot
		await self._persist(cycle_id, slot)
		return token

	async def resolve(self, cycle_id: uuid.UUID, token: int, result: PredictionResult) -> bool:
		return await self._settle(cycle_id, PredictionSlot(loading=False, result=result, token=token))

	async def fail(self, cycle_id: uuid.UUID, token: int, error: str) -> bool:
		return await self._settle(cycle_id, PredictionSlot(loading=False, error=error, token=token))

	async def get(self, cycle_id: uuid.UUID) -> PredictionSlot | None:
		slot = self._slots.get(cycle_id)
		if slot is not None or self.redis_client is None:
			return slot
		raw = await self.redis_client.get(_slot_key(cycle_id))
		if raw is None:
			return None
		return PredictionSlot.model_validate_json(raw)

	async def _settle(self, cycle_id: uuid.UUID, slot: PredictionSlot) -> bool:
		current = self._slots.get(cycle_id)
		if current is None or current.token != slot.token:
			_logger.info(
				"prediction_stale_response_dropped",
				extra={"cycle_id": str(cycle_id), "token": slot.token},
			)
			return False
		self._slots[cycle_id] = slot
		await self._persist(cycle_id, slot)
		return True

	async def _persist(self, cycle_id: uuid.UUID, slot: PredictionSlot) -> None:
		if self.redis_client is None:
			return
		await self.redis_client.setex(_slot_key(cycle_id), self.ttl_seconds, slot.model_dump_json())


def assemble_prediction_inputs(
	info: CycleInfo,
	cycles: Sequence[CultivationCycleRecord],
	observations: Sequence[SiteObservationRecord],
	language: Language,
) -> PredictionInputs | None:
	"""Collect what the prediction service needs, or ``None`` if the cycle lacks a module or seaweed type."""
	if info.module is None or info.seaweed_type is None:
		return None
	cycle = info.cycle
	historical = [
		other
		for other in cycles
		if other.seaweed_type_id == cycle.seaweed_type_id
		and other.id != cycle.id
		and other.harvest_date is not None
	]
	site_observations = sorted(
		(observation for observation in observations if observation.site_id == info.module.site_id),
		key=lambda observation: observation.observed_on,
		reverse=True,
	)
	return PredictionInputs(
		cycle=cycle,
		module=info.module,
		seaweed_type=info.seaweed_type,
		historical_cycles=historical,
		site_observations=site_observations,
		language=language,
	)


class PredictionService:
	def __init__(
		self,
		db: AsyncSession,
		registry: PredictionSlotRegistry,
		client: PredictionClient | None = None,
	):
		self.db = db
		self.registry = registry
		self.client = client or PredictionClient()
		self.store = RecordStore(db)

	async def begin(self, cycle_id: uuid.UUID) -> int:
		"""Mark the cycle's slot as loading and return the token for this request."""
		await self.store.get_cultivation_cycle(cycle_id)
		return await self.registry.issue(cycle_id)

	async def run(self, cycle_id: uuid.UUID, token: int, language: Language) -> PredictionSlot | None:
		"""Resolve the slot for ``token``; failures end up in the slot, never raised."""
		try:
			info = await CycleService(self.db).get_cycle_info(cycle_id)
			observations = []
			if info.module is not None:
				observations = await self.store.list_site_observations(info.module.site_id)
			inputs = assemble_prediction_inputs(
				info,
				await self.store.list_cultivation_cycles(),
				observations,
				language,
			)
			result = await self.client.predict(inputs) if inputs is not None else None
		except Exception:
			_logger.exception("prediction_failed", extra={"cycle_id": str(cycle_id), "token": token})
			await self.registry.fail(cycle_id, token, PREDICTION_ERROR_KEY)
			return await self.registry.get(cycle_id)

		if result is None:
			_logger.warning("prediction_unavailable", extra={"cycle_id": str(cycle_id), "token": token})
			await self.registry.fail(cycle_id, token, PREDICTION_ERROR_KEY)
		else:
			await self.registry.resolve(cycle_id, token, result)
		return await self.registry.get(cycle_id)

	async def get_slot(self, cycle_id: uuid.UUID) -> PredictionSlot:
		slot = await self.registry.get(cycle_id)
		if slot is None:
			raise LookupError(f"No prediction requested for cultivation cycle {cycle_id}")
		return slot
