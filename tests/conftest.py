"""Shared pytest fixtures: async test client, session/redis fakes, record factories."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import date
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.database import get_db
from app.main import app
from app.models.enums import CycleStatusEnum
from app.schemas.records import (
	CultivationCycleRecord,
	CuttingOperationRecord,
	FarmerRecord,
	ModuleCut,
	ModuleRecord,
	SeaweedTypeRecord,
	StatusHistoryEntry,
)

TODAY = date(2026, 6, 15)


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()
		self.flush = AsyncMock()
		self.added: list[Any] = []

	def add(self, obj: Any) -> None:
		self.added.append(obj)


class FakeRedis:
	"""Dict-backed async Redis stand-in covering get / setex / delete / ping."""

	def __init__(self) -> None:
		self.values: dict[str, str] = {}
		self.ttls: dict[str, int] = {}
		self.get = AsyncMock(side_effect=self._get)
		self.setex = AsyncMock(side_effect=self._setex)
		self.delete = AsyncMock(side_effect=self._delete)
		self.ping = AsyncMock(return_value=True)

	async def _get(self, key: str) -> str | None:
		return self.values.get(key)

	async def _setex(self, key: str, ttl: int, value: str) -> bool:
		self.values[key] = value
		self.ttls[key] = ttl
		return True

	async def _delete(self, key: str) -> int:
		existed = key in self.values
		self.values.pop(key, None)
		self.ttls.pop(key, None)
		return int(existed)


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def today() -> date:
	return TODAY


@pytest.fixture
def site_id() -> uuid.UUID:
	return uuid.UUID("517e0000-0000-0000-0000-000000000001")


@pytest.fixture
def seaweed_type() -> SeaweedTypeRecord:
	return SeaweedTypeRecord(id=uuid.UUID("5ea00000-0000-0000-0000-000000000001"), name="Kappaphycus")


@pytest.fixture
def make_module(site_id: uuid.UUID) -> Callable[..., ModuleRecord]:
	def _make(code: str = "M-01", *, status: str | None = None, **overrides: Any) -> ModuleRecord:
		history = [StatusHistoryEntry(status=status, changed_on=TODAY)] if status else []
		fields: dict[str, Any] = {
			"id": uuid.uuid4(),
			"code": code,
			"site_id": site_id,
			"lines": 20,
			"status_history": history,
		}
		fields.update(overrides)
		return ModuleRecord(**fields)

	return _make


@pytest.fixture
def make_cycle(seaweed_type: SeaweedTypeRecord) -> Callable[..., CultivationCycleRecord]:
	def _make(**overrides: Any) -> CultivationCycleRecord:
		fields: dict[str, Any] = {
			"id": uuid.uuid4(),
			"module_id": uuid.uuid4(),
			"seaweed_type_id": seaweed_type.id,
			"planting_date": date(2026, 5, 1),
			"status": CycleStatusEnum.PLANTED,
			"initial_weight": 10.0,
			"lines_planted": 20.0,
		}
		fields.update(overrides)
		return CultivationCycleRecord(**fields)

	return _make


@pytest.fixture
def make_operation(site_id: uuid.UUID) -> Callable[..., CuttingOperationRecord]:
	def _make(module_ids: list[uuid.UUID] | None = None, **overrides: Any) -> CuttingOperationRecord:
		fields: dict[str, Any] = {
			"id": uuid.uuid4(),
			"operation_date": date(2026, 4, 28),
			"site_id": site_id,
			"module_cuts": [ModuleCut(module_id=module_id, lines_cut=10) for module_id in (module_ids or [])],
			"unit_price": 2.5,
			"total_amount": 25.0,
		}
		fields.update(overrides)
		return CuttingOperationRecord(**fields)

	return _make


@pytest.fixture
def farmer() -> FarmerRecord:
	return FarmerRecord(id=uuid.uuid4(), first_name="Amina", last_name="Said")


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and DB dependency mocked."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
	for attribute in ("redis", "prediction_slots"):
		if hasattr(app.state, attribute):
			delattr(app.state, attribute)
