"""Staged cascade deletion of cutting operations.

The confirmation position is stored per operation (Redis when available,
otherwise a process-local map with the same expiry) together with the impact
summary the operator was shown. The impact is recomputed on every transition;
if it differs from the stored one in any count, the walk restarts at step 0
instead of confirming a plan the operator never saw.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.schemas.cultivation import DeletionWorkflowRead, ImpactRead
from app.schemas.records import CultivationCycleRecord, CuttingOperationRecord
from app.services.confirmation import ConfirmationState, ConfirmationWorkflow, open_workflow
from app.services.impact import (
	ConfirmationStep,
	ImpactSummary,
	analyze_impact,
	build_confirmation_steps,
	related_cycles_for_operation,
)
from app.services.record_store import RecordStore

_logger = logging.getLogger("kelpflow.deletion")

# key -> (monotonic expiry, serialized walk)
_local_states: dict[str, tuple[float, str]] = {}


def _state_key(operation_id: uuid.UUID) -> str:
	return f"deletion:{operation_id}:workflow"


def _purge_expired(now: float) -> None:
	for key in [key for key, (expires_at, _) in _local_states.items() if expires_at <= now]:
		del _local_states[key]


@dataclass(frozen=True)
class SavedWalk:
	state: ConfirmationState
	plan: dict[str, Any]


class WorkflowStateStore:
	def __init__(
		self,
		redis_client: Redis | None = None,
		ttl_seconds: int | None = None,
		clock: Callable[[], float] = time.monotonic,
	):
		self.redis_client = redis_client
		self.ttl_seconds = ttl_seconds or get_settings().deletion_workflow_ttl_seconds
		self.clock = clock

	async def load(self, operation_id: uuid.UUID) -> SavedWalk | None:
		key = _state_key(operation_id)
		if self.redis_client is not None:
			raw = await self.redis_client.get(key)
		else:
			_purge_expired(self.clock())
			entry = _local_states.get(key)
			raw = entry[1] if entry is not None else None
		if raw is None:
			return None
		payload = json.loads(raw)
		return SavedWalk(
			state=ConfirmationState(step_count=int(payload["step_count"]), index=int(payload["index"])),
			plan=dict(payload.get("plan") or {}),
		)

	async def save(self, operation_id: uuid.UUID, state: ConfirmationState, plan: ImpactSummary) -> None:
		key = _state_key(operation_id)
		raw = json.dumps({"index": state.index, "step_count": state.step_count, "plan": plan.model_dump()})
		if self.redis_client is not None:
			await self.redis_client.setex(key, self.ttl_seconds, raw)
		else:
			now = self.clock()
			_purge_expired(now)
			_local_states[key] = (now + self.ttl_seconds, raw)

	async def clear(self, operation_id: uuid.UUID) -> None:
		key = _state_key(operation_id)
		if self.redis_client is not None:
			await self.redis_client.delete(key)
		else:
			_local_states.pop(key, None)


@dataclass(frozen=True)
class _Impact:
	operation: CuttingOperationRecord
	related: list[CultivationCycleRecord]
	summary: ImpactSummary
	steps: list[ConfirmationStep]


class DeletionService:
	def __init__(self, db: AsyncSession, redis_client: Redis | None = None):
		self.db = db
		self.store = RecordStore(db)
		self.states = WorkflowStateStore(redis_client)

	async def get_impact(self, operation_id: uuid.UUID) -> ImpactRead:
		impact = await self._compute(operation_id)
		return ImpactRead(operation_id=operation_id, summary=impact.summary, steps=impact.steps)

	async def start(self, operation_id: uuid.UUID) -> DeletionWorkflowRead:
		impact = await self._compute(operation_id)
		workflow = self._open(impact)
		await self.states.save(operation_id, workflow.state, impact.summary)
		return self._to_read(operation_id, workflow, impact.summary)

	async def next(self, operation_id: uuid.UUID) -> DeletionWorkflowRead:
		saved = await self._require_state(operation_id)
		impact = await self._compute(operation_id)
		workflow = self._open(impact)

		if not self._plan_unchanged(saved, workflow, impact.summary):
			_logger.warning(
				"deletion_plan_changed",
				extra={
					"operation_id": str(operation_id),
					"previous_steps": saved.state.step_count,
					"current_steps": workflow.step_count,
					"previous_cycles": saved.plan.get("total_cycles"),
					"current_cycles": impact.summary.total_cycles,
				},
			)
			await self.states.save(operation_id, workflow.state, impact.summary)
			return self._to_read(operation_id, workflow, impact.summary)

		workflow.state = saved.state
		if not workflow.next():
			await self.states.save(operation_id, workflow.state, impact.summary)
			return self._to_read(operation_id, workflow, impact.summary)

		await self.store.delete_cutting_operation(operation_id)
		await self.states.clear(operation_id)
		return self._to_read(operation_id, workflow, impact.summary, confirmed=True)

	async def cancel(self, operation_id: uuid.UUID) -> DeletionWorkflowRead:
		saved = await self._require_state(operation_id)
		impact = await self._compute(operation_id)
		workflow = self._open(impact)
		if self._plan_unchanged(saved, workflow, impact.summary):
			workflow.state = saved.state
		workflow.cancel()
		await self.states.clear(operation_id)
		return self._to_read(operation_id, workflow, impact.summary, cancelled=True)

	@staticmethod
	def _plan_unchanged(saved: SavedWalk, workflow: ConfirmationWorkflow, summary: ImpactSummary) -> bool:
		return saved.state.step_count == workflow.step_count and saved.plan == summary.model_dump()

	async def _compute(self, operation_id: uuid.UUID) -> _Impact:
		operation = await self.store.get_cutting_operation(operation_id)
		related = related_cycles_for_operation(operation, await self.store.list_cultivation_cycles())
		summary = analyze_impact(operation, related)
		return _Impact(
			operation=operation,
			related=related,
			summary=summary,
			steps=build_confirmation_steps(summary),
		)

	def _open(self, impact: _Impact) -> ConfirmationWorkflow:
		operation_id = str(impact.operation.id)
		workflow = open_workflow(
			impact.operation,
			impact.related,
			on_confirm=lambda: _logger.info(
				"cascade_delete_confirmed",
				extra={"operation_id": operation_id, "cycles": impact.summary.total_cycles},
			),
			on_cancel=lambda: _logger.info("cascade_delete_cancelled", extra={"operation_id": operation_id}),
		)
		if workflow is None:
			raise ValueError(f"Cutting operation {operation_id} has no related cycles to confirm")
		return workflow

	async def _require_state(self, operation_id: uuid.UUID) -> SavedWalk:
		state = await self.states.load(operation_id)
		if state is None:
			raise LookupError(f"No deletion workflow in progress for cutting operation {operation_id}")
		return state

	@staticmethod
	def _to_read(
		operation_id: uuid.UUID,
		workflow: ConfirmationWorkflow,
		summary: ImpactSummary,
		*,
		confirmed: bool = False,
		cancelled: bool = False,
	) -> DeletionWorkflowRead:
		return DeletionWorkflowRead(
			operation_id=operation_id,
			index=workflow.index,
			step_count=workflow.step_count,
			progress_percent=workflow.progress_percent,
			current_step=workflow.current_step,
			is_last_step=workflow.is_last_step,
			confirmed=confirmed,
			cancelled=cancelled,
			summary=summary,
		)
