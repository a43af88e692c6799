"""HTTP client for the remote harvest prediction service."""

from __future__ import annotations

import json
from typing import Any

import httpx
from pydantic import ValidationError

from app.config import Settings, get_settings
from app.schemas.prediction import PredictionInputs, PredictionResult, serialize_inputs


class PredictionClientError(RuntimeError):
	"""Raised when the prediction service cannot be reached or rejects the call."""


class PredictionClient:
	def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
		self.settings = settings or get_settings()
		self.transport = transport

	@property
	def configured(self) -> bool:
		return bool(self.settings.prediction_api_url)

	async def predict(self, inputs: PredictionInputs) -> PredictionResult | None:
		"""Return a prediction, or ``None`` when the service produced no usable result."""
		if not self.configured:
			return None

		headers = {"content-type": "application/json"}
		if self.settings.prediction_api_key:
			headers["authorization"] = f"Bearer {self.settings.prediction_api_key}"
		body = {
			"model": self.settings.prediction_model,
			"language": inputs.language.value,
			"inputs": serialize_inputs(inputs),
		}

		try:
			async with httpx.AsyncClient(
				timeout=self.settings.prediction_timeout_seconds,
				transport=self.transport,
			) as client:
				response = await client.post(self.settings.prediction_api_url, headers=headers, json=body)
				response.raise_for_status()
				payload = response.json()
		except (httpx.HTTPError, json.JSONDecodeError) as exc:
			raise PredictionClientError(f"prediction request failed: {exc}") from exc

		return self.parse_response(payload)

	@staticmethod
	def parse_response(payload: Any) -> PredictionResult | None:
		if not isinstance(payload, dict):
			return None
		result = payload.get("prediction", payload)
		if not isinstance(result, dict) or not result:
			return None
		try:
			return PredictionResult.model_validate(result)
		except ValidationError:
			return None
