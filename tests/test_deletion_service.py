from __future__ import annotations

import json
import uuid
from datetime import date
from unittest.mock import AsyncMock

import pytest

from app.models.enums import SeverityEnum
from app.services import deletion_service
from app.services.confirmation import ConfirmationState
from app.services.deletion_service import DeletionService, WorkflowStateStore
from app.services.record_store import RecordStore


@pytest.fixture
def store_state(monkeypatch: pytest.MonkeyPatch, make_operation, make_cycle):
	"""Patch the record store reads with a mutable in-memory snapshot."""
	operation = make_operation()
	state = {
		"operation": operation,
		"cycles": [make_cycle(cutting_operation_id=operation.id, harvest_date=date(2026, 6, 1))],
	}

	async def fake_get_operation(self: RecordStore, operation_id: uuid.UUID):
		if operation_id != state["operation"].id:
			raise LookupError(f"Cutting operation {operation_id} not found")
		return state["operation"]

	async def fake_list_cycles(self: RecordStore):
		return list(state["cycles"])

	delete_mock = AsyncMock(return_value=1)
	monkeypatch.setattr(RecordStore, "get_cutting_operation", fake_get_operation)
	monkeypatch.setattr(RecordStore, "list_cultivation_cycles", fake_list_cycles)
	monkeypatch.setattr(RecordStore, "delete_cutting_operation", delete_mock)
	state["delete"] = delete_mock
	return state


@pytest.mark.asyncio
async def test_impact_preview(fake_db_session, store_state) -> None:
	operation_id = store_state["operation"].id
	impact = await DeletionService(fake_db_session).get_impact(operation_id)
	assert impact.summary.total_cycles == 1
	assert [step.category for step in impact.steps] == ["base", "harvest"]


@pytest.mark.asyncio
async def test_full_walk_deletes_once(fake_db_session, fake_redis, store_state) -> None:
	operation_id = store_state["operation"].id
	service = DeletionService(fake_db_session, fake_redis)

	started = await service.start(operation_id)
	assert (started.index, started.step_count) == (0, 2)
	assert started.progress_percent == pytest.approx(50.0)

	second = await service.next(operation_id)
	assert second.index == 1
	assert second.is_last_step is True
	assert second.confirmed is False
	store_state["delete"].assert_not_awaited()

	done = await service.next(operation_id)
	assert done.confirmed is True
	assert done.index == 0
	store_state["delete"].assert_awaited_once_with(operation_id)
	assert f"deletion:{operation_id}:workflow" not in fake_redis.values


@pytest.mark.asyncio
async def test_workflow_state_uses_redis_ttl(fake_db_session, fake_redis, store_state) -> None:
	operation_id = store_state["operation"].id
	service = DeletionService(fake_db_session, fake_redis)
	await service.start(operation_id)

	key = f"deletion:{operation_id}:workflow"
	payload = json.loads(fake_redis.values[key])
	assert (payload["index"], payload["step_count"]) == (0, 2)
	assert payload["plan"]["total_cycles"] == 1
	assert payload["plan"]["harvested"] == 1
	assert fake_redis.ttls[key] == service.states.ttl_seconds


@pytest.mark.asyncio
async def test_changed_plan_restarts_walk(fake_db_session, store_state, make_cycle) -> None:
	operation_id = store_state["operation"].id
	service = DeletionService(fake_db_session)
	await service.start(operation_id)

	store_state["cycles"].append(
		make_cycle(
			cutting_operation_id=operation_id,
			harvest_date=date(2026, 6, 1),
			drying_completion_date=date(2026, 6, 3),
			bagged_date=date(2026, 6, 4),
		)
	)
	restarted = await service.next(operation_id)

	assert restarted.index == 0
	assert restarted.step_count == 4
	assert restarted.current_step.category == "base"
	assert restarted.summary.has_bagged_data is True
	store_state["delete"].assert_not_awaited()
	await service.cancel(operation_id)


@pytest.mark.asyncio
async def test_cancel_clears_state(fake_db_session, store_state) -> None:
	operation_id = store_state["operation"].id
	service = DeletionService(fake_db_session)
	await service.start(operation_id)
	await service.next(operation_id)

	cancelled = await service.cancel(operation_id)
	assert cancelled.cancelled is True
	assert cancelled.index == 0

	with pytest.raises(LookupError):
		await service.next(operation_id)
	store_state["delete"].assert_not_awaited()


@pytest.mark.asyncio
async def test_start_refuses_empty_impact(fake_db_session, store_state) -> None:
	store_state["cycles"].clear()
	with pytest.raises(ValueError):
		await DeletionService(fake_db_session).start(store_state["operation"].id)


@pytest.mark.asyncio
async def test_unknown_operation_is_lookup_error(fake_db_session, store_state) -> None:
	with pytest.raises(LookupError):
		await DeletionService(fake_db_session).get_impact(uuid.uuid4())


@pytest.mark.asyncio
async def test_next_without_start_is_lookup_error(fake_db_session, store_state) -> None:
	with pytest.raises(LookupError):
		await DeletionService(fake_db_session).next(store_state["operation"].id)


@pytest.mark.asyncio
async def test_last_step_severity_reflects_deepest_stage(fake_db_session, store_state, make_cycle) -> None:
	operation_id = store_state["operation"].id
	store_state["cycles"] = [
		make_cycle(
			cutting_operation_id=operation_id,
			harvest_date=date(2026, 6, 1),
			drying_completion_date=date(2026, 6, 2),
			bagged_date=date(2026, 6, 3),
			stock_date=date(2026, 6, 4),
		)
	]
	impact = await DeletionService(fake_db_session).get_impact(operation_id)
	assert impact.steps[-1].category == "stock"
	assert impact.steps[-1].severity == SeverityEnum.blocking


@pytest.mark.asyncio
async def test_grown_cascade_with_same_step_count_restarts_walk(fake_db_session, store_state, make_cycle) -> None:
	operation_id = store_state["operation"].id
	service = DeletionService(fake_db_session)
	await service.start(operation_id)
	last = await service.next(operation_id)
	assert last.is_last_step is True
	assert last.summary.total_cycles == 1

	store_state["cycles"].extend(
		[
			make_cycle(cutting_operation_id=operation_id, harvest_date=date(2026, 6, 2)),
			make_cycle(cutting_operation_id=operation_id),
		]
	)
	restarted = await service.next(operation_id)

	assert restarted.confirmed is False
	assert restarted.step_count == 2
	assert restarted.index == 0
	assert restarted.summary.total_cycles == 3
	assert restarted.summary.harvested == 2
	store_state["delete"].assert_not_awaited()

	await service.next(operation_id)
	done = await service.next(operation_id)
	assert done.confirmed is True
	store_state["delete"].assert_awaited_once_with(operation_id)


@pytest.mark.asyncio
async def test_local_walk_state_expires(monkeypatch: pytest.MonkeyPatch, fake_db_session, store_state) -> None:
	operation_id = store_state["operation"].id
	clock = {"now": 1000.0}
	monkeypatch.setattr(deletion_service, "_local_states", {})

	store = WorkflowStateStore(ttl_seconds=60, clock=lambda: clock["now"])
	impact = await DeletionService(fake_db_session).get_impact(operation_id)

	await store.save(operation_id, ConfirmationState(step_count=2), impact.summary)
	assert await store.load(operation_id) is not None

	clock["now"] += 61
	assert await store.load(operation_id) is None
	assert deletion_service._local_states == {}
