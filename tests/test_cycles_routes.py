from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import date
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from app.config import Language
from app.models.enums import CycleStatusEnum, PipelineStageEnum, SortDirectionEnum
from app.routes import cycles as cycles_routes
from app.schemas.cultivation import HarvestCreate
from app.services.cycle_listing import CycleFilters, CycleInfo, CycleSort
from app.services.cycle_service import CycleService
from app.services.prediction_service import PredictionService, PredictionSlotRegistry


@pytest.mark.asyncio
async def test_list_cycles_passes_filters_and_sort(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch, make_cycle, make_module, seaweed_type
) -> None:
	module = make_module("M-07")
	info = CycleInfo(cycle=make_cycle(module_id=module.id), module=module, seaweed_type=seaweed_type, age=12)
	captured: dict = {}

	async def fake_list(self: CycleService, filters: CycleFilters, sort: CycleSort, today=None) -> list[CycleInfo]:
		captured["filters"] = filters
		captured["sort"] = sort
		return [info]

	monkeypatch.setattr(CycleService, "list_cycles", fake_list)
	site_id = uuid.uuid4()

	response = await client.get(
		"/api/v1/cycles",
		params={"site_id": str(site_id).upper(), "sort_key": "age", "direction": "descending"},
	)
	assert response.status_code == 200
	body = response.json()
	assert body["sort_key"] == "age"
	assert body["direction"] == "descending"
	assert body["filters"] == {"site_id": str(site_id), "seaweed_type_id": "all"}
	assert body["items"][0]["module"]["code"] == "M-07"
	assert body["items"][0]["alert_status"] == "normal"
	assert captured["sort"] == CycleSort(key="age", direction=SortDirectionEnum.descending)


@pytest.mark.asyncio
async def test_list_cycles_defaults(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def fake_list(self: CycleService, filters: CycleFilters, sort: CycleSort, today=None) -> list[CycleInfo]:
		assert filters == CycleFilters()
		assert sort == CycleSort()
		return []

	monkeypatch.setattr(CycleService, "list_cycles", fake_list)

	response = await client.get("/api/v1/cycles")
	assert response.status_code == 200
	assert response.json()["sort_key"] == "module.code"
	assert response.json()["items"] == []


@pytest.mark.asyncio
async def test_list_cycles_rejects_malformed_filter_id(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	list_mock = AsyncMock(return_value=[])
	monkeypatch.setattr(CycleService, "list_cycles", list_mock)

	response = await client.get("/api/v1/cycles", params={"seaweed_type_id": "site-1"})
	assert response.status_code == 400
	list_mock.assert_not_awaited()


@pytest.mark.asyncio
async def test_export_endpoint(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def fake_export(self: CycleService, filters, sort, translate=None) -> dict:
		return {"filename": "CultivationCycles_2026-06-15", "columns": [{"header": "h", "key": "k", "width": 1}], "rows": []}

	monkeypatch.setattr(CycleService, "export_cycles", fake_export)

	response = await client.get("/api/v1/cycles/export")
	assert response.status_code == 200
	assert response.json()["filename"] == "CultivationCycles_2026-06-15"


@pytest.mark.asyncio
async def test_get_unknown_cycle_is_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def fake_get(self: CycleService, cycle_id: uuid.UUID, today=None) -> CycleInfo:
		raise LookupError(f"Cultivation cycle {cycle_id} not found")

	monkeypatch.setattr(CycleService, "get_cycle_info", fake_get)

	response = await client.get(f"/api/v1/cycles/{uuid.uuid4()}")
	assert response.status_code == 404


@pytest.mark.asyncio
async def test_harvest_defaults_endpoint(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	cycle_id = uuid.uuid4()

	async def fake_defaults(self: CycleService, _cycle_id: uuid.UUID) -> dict:
		return {
			"cycle_id": cycle_id,
			"harvest_date": date(2026, 6, 15),
			"notes": "Harvest for maturity",
			"lines_harvested": 20.0,
		}

	monkeypatch.setattr(CycleService, "harvest_defaults", fake_defaults)

	response = await client.get(f"/api/v1/cycles/{cycle_id}/harvest/default")
	assert response.status_code == 200
	assert response.json()["harvest_date"] == "2026-06-15"


@pytest.mark.asyncio
async def test_record_harvest_endpoint(client: AsyncClient, monkeypatch: pytest.MonkeyPatch, make_cycle) -> None:
	async def fake_harvest(self: CycleService, cycle_id: uuid.UUID, payload: HarvestCreate):
		return make_cycle(id=cycle_id, status=CycleStatusEnum.HARVESTED, harvest_date=payload.harvest_date)

	monkeypatch.setattr(CycleService, "record_harvest", fake_harvest)

	cycle_id = uuid.uuid4()
	response = await client.post(
		f"/api/v1/cycles/{cycle_id}/harvest",
		json={"harvest_date": "2026-06-15", "lines_harvested": 20, "harvested_weight": 80, "cuttings_weight": 5},
	)
	assert response.status_code == 200
	assert response.json()["status"] == "HARVESTED"


@pytest.mark.asyncio
async def test_record_harvest_validation_error_is_422(client: AsyncClient) -> None:
	response = await client.post(
		f"/api/v1/cycles/{uuid.uuid4()}/harvest",
		json={"harvest_date": "2026-06-15", "notes": "Other", "lines_harvested": 20, "harvested_weight": 80, "cuttings_weight": 5},
	)
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_stage_writer_rejection_is_400(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def fake_advance(self: CycleService, cycle_id, stage: PipelineStageEnum, on: date):
		raise ValueError("bagging requires drying_completion_date to be set first")

	monkeypatch.setattr(CycleService, "advance_stage", fake_advance)

	response = await client.post(f"/api/v1/cycles/{uuid.uuid4()}/stages/bagging", json={"on": "2026-06-20"})
	assert response.status_code == 400
	assert "drying_completion_date" in response.json()["detail"]


@pytest.mark.asyncio
async def test_unknown_stage_is_422(client: AsyncClient) -> None:
	response = await client.post(f"/api/v1/cycles/{uuid.uuid4()}/stages/planting", json={"on": "2026-06-20"})
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_mark_growing_endpoint(client: AsyncClient, monkeypatch: pytest.MonkeyPatch, make_cycle) -> None:
	async def fake_growing(self: CycleService, cycle_id: uuid.UUID):
		return make_cycle(id=cycle_id, status=CycleStatusEnum.GROWING)

	monkeypatch.setattr(CycleService, "mark_growing", fake_growing)

	response = await client.post(f"/api/v1/cycles/{uuid.uuid4()}/growing")
	assert response.status_code == 200
	assert response.json()["status"] == "GROWING"


@pytest.mark.asyncio
async def test_delete_cycle_endpoint(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	delete_mock = AsyncMock(return_value=None)
	monkeypatch.setattr(CycleService, "delete_cycle", delete_mock)

	cycle_id = uuid.uuid4()
	response = await client.delete(f"/api/v1/cycles/{cycle_id}")
	assert response.status_code == 204
	delete_mock.assert_awaited_once_with(cycle_id)


@pytest.mark.asyncio
async def test_request_prediction_schedules_background_run(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
	cycle_id = uuid.uuid4()
	scheduled: list[tuple] = []

	async def fake_run_prediction(_cycle_id, token, language, registry) -> None:
		scheduled.append((_cycle_id, token, language))

	async def fake_begin(self: PredictionService, _cycle_id: uuid.UUID) -> int:
		return await self.registry.issue(_cycle_id)

	monkeypatch.setattr(cycles_routes, "_run_prediction", fake_run_prediction)
	monkeypatch.setattr(PredictionService, "begin", fake_begin)

	response = await client.post(f"/api/v1/cycles/{cycle_id}/predictions", json={"language": "fr"})
	assert response.status_code == 202
	assert response.json()["loading"] is True
	assert scheduled == [(cycle_id, 1, Language.fr)]

	status_response = await client.get(f"/api/v1/cycles/{cycle_id}/predictions")
	assert status_response.status_code == 200
	assert status_response.json()["loading"] is True


@pytest.mark.asyncio
async def test_prediction_status_without_request_is_404(client: AsyncClient) -> None:
	response = await client.get(f"/api/v1/cycles/{uuid.uuid4()}/predictions")
	assert response.status_code == 404


@pytest.mark.asyncio
async def test_background_prediction_task_never_raises(monkeypatch: pytest.MonkeyPatch) -> None:
	class _FakeSession:
		def __init__(self) -> None:
			self.commit = AsyncMock()
			self.rollback = AsyncMock()

	@asynccontextmanager
	async def _fake_factory():
		yield _FakeSession()

	async def _exploding_run(self: PredictionService, *_args) -> None:
		raise RuntimeError("redis unavailable")

	monkeypatch.setattr(cycles_routes, "async_session_factory", _fake_factory)
	monkeypatch.setattr(PredictionService, "run", _exploding_run)

	await cycles_routes._run_prediction(uuid.uuid4(), 1, Language.en, PredictionSlotRegistry(ttl_seconds=60))


@pytest.mark.asyncio
async def test_cycles_openapi_contract(client: AsyncClient) -> None:
	response = await client.get("/openapi.json")
	assert response.status_code == 200
	paths = response.json()["paths"]
	assert "/api/v1/cycles" in paths
	assert "/api/v1/cycles/export" in paths
	assert "/api/v1/cycles/{cycle_id}/stages/{stage}" in paths
	assert "/api/v1/cycles/{cycle_id}/predictions" in paths
