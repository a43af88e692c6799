from __future__ import annotations

import json
import logging

import pytest
import structlog
from httpx import AsyncClient

from app import main
from app.middleware import logging as logging_middleware


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
	response = await client.get("/health")
	assert response.status_code == 200
	assert response.json()["service"] == "kelpflow"


@pytest.mark.asyncio
async def test_health_ready_ok(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def _ok(_app):
		return {
			"database": {"ok": True, "message": "ok"},
			"redis": {"ok": True, "message": "ok"},
		}

	monkeypatch.setattr(main, "_run_readiness_checks", _ok)

	response = await client.get("/health/ready")
	assert response.status_code == 200
	body = response.json()
	assert body["status"] == "ok"
	assert body["checks"]["database"]["ok"] is True


@pytest.mark.asyncio
async def test_health_ready_degraded(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def _bad(_app):
		return {
			"database": {"ok": True, "message": "ok"},
			"redis": {"ok": False, "message": "connection refused"},
		}

	monkeypatch.setattr(main, "_run_readiness_checks", _bad)

	response = await client.get("/health/ready")
	assert response.status_code == 503
	body = response.json()
	assert body["status"] == "degraded"
	assert body["checks"]["redis"]["message"] == "connection refused"


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: AsyncClient) -> None:
	response = await client.get("/health", headers={"x-request-id": "kelpflow-request-id"})
	assert response.status_code == 200
	assert response.headers.get("x-request-id") == "kelpflow-request-id"


@pytest.mark.asyncio
async def test_request_id_generated_when_missing(client: AsyncClient) -> None:
	response = await client.get("/health")
	generated = response.headers.get("x-request-id")
	assert generated is not None
	assert len(generated) >= 8


def test_stdlib_extras_render_as_json(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
	root = logging.getLogger()
	monkeypatch.setattr(logging_middleware, "_configured", False)
	monkeypatch.setattr(root, "handlers", list(root.handlers))
	monkeypatch.setattr(root, "level", root.level)
	try:
		logging_middleware.configure_structured_logging()
		logging.getLogger("kelpflow.test").info("cycle_checked", extra={"cycle_id": "c-1"})
	finally:
		structlog.reset_defaults()

	payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
	assert payload["event"] == "cycle_checked"
	assert payload["cycle_id"] == "c-1"
	assert payload["logger"] == "kelpflow.test"
	assert payload["level"] == "info"
