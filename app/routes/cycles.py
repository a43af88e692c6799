"""Cultivation cycle listing, export, harvest, pipeline and prediction routes."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Language, get_settings
from app.database import async_session_factory, get_db
from app.models.enums import PipelineStageEnum, SortDirectionEnum
from app.schemas.cultivation import (
	CycleExportRead,
	CycleInfoRead,
	CycleListRead,
	HarvestCreate,
	HarvestDefaultsRead,
	StageAdvance,
)
from app.schemas.prediction import PredictionRequest, PredictionSlotRead
from app.schemas.records import CultivationCycleRecord
from app.services.cycle_listing import DEFAULT_SORT_KEY, CycleFilters, CycleInfo, CycleSort
from app.services.cycle_service import CycleService
from app.services.prediction_service import PredictionService, PredictionSlotRegistry
from app.services.sort_filter import ALL_SENTINEL

router = APIRouter(prefix="/cycles", tags=["cycles"])

_logger = logging.getLogger("kelpflow.routes.cycles")


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected cultivation cycle failure",
	)


def _to_info_read(info: CycleInfo) -> CycleInfoRead:
	return CycleInfoRead.model_validate(info, from_attributes=True)


def _prediction_registry(request: Request) -> PredictionSlotRegistry:
	registry = getattr(request.app.state, "prediction_slots", None)
	if registry is None:
		registry = PredictionSlotRegistry(getattr(request.app.state, "redis", None))
		request.app.state.prediction_slots = registry
	return registry


async def _run_prediction(
	cycle_id: uuid.UUID,
	token: int,
	language: Language,
	registry: PredictionSlotRegistry,
) -> None:
	async with async_session_factory() as session:
		try:
			await PredictionService(session, registry).run(cycle_id, token, language)
		except Exception:
			_logger.exception("prediction_task_failed", extra={"cycle_id": str(cycle_id)})


@router.get("", response_model=CycleListRead)
async def list_cycles(
	site_id: str = ALL_SENTINEL,
	seaweed_type_id: str = ALL_SENTINEL,
	sort_key: str = DEFAULT_SORT_KEY,
	direction: SortDirectionEnum = SortDirectionEnum.ascending,
	db: AsyncSession = Depends(get_db),
) -> CycleListRead:
	sort = CycleSort(key=sort_key, direction=direction)
	try:
		filters = CycleFilters(site_id=site_id, seaweed_type_id=seaweed_type_id)
		infos = await CycleService(db).list_cycles(filters, sort)
	except Exception as exc:
		raise _map_error(exc) from exc
	return CycleListRead(
		sort_key=sort.key,
		direction=sort.direction,
		filters=filters.model_dump(),
		items=[_to_info_read(info) for info in infos],
	)


@router.get("/export", response_model=CycleExportRead)
async def export_cycles(
	site_id: str = ALL_SENTINEL,
	seaweed_type_id: str = ALL_SENTINEL,
	sort_key: str = DEFAULT_SORT_KEY,
	direction: SortDirectionEnum = SortDirectionEnum.ascending,
	db: AsyncSession = Depends(get_db),
) -> CycleExportRead:
	sort = CycleSort(key=sort_key, direction=direction)
	try:
		filters = CycleFilters(site_id=site_id, seaweed_type_id=seaweed_type_id)
		payload = await CycleService(db).export_cycles(filters, sort)
	except Exception as exc:
		raise _map_error(exc) from exc
	return CycleExportRead(**payload)


@router.get("/{cycle_id}", response_model=CycleInfoRead)
async def get_cycle(cycle_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> CycleInfoRead:
	try:
		return _to_info_read(await CycleService(db).get_cycle_info(cycle_id))
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{cycle_id}/harvest/default", response_model=HarvestDefaultsRead)
async def get_harvest_defaults(cycle_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> HarvestDefaultsRead:
	try:
		return HarvestDefaultsRead(**await CycleService(db).harvest_defaults(cycle_id))
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{cycle_id}/harvest", response_model=CultivationCycleRecord)
async def record_harvest(
	cycle_id: uuid.UUID,
	payload: HarvestCreate,
	db: AsyncSession = Depends(get_db),
) -> CultivationCycleRecord:
	try:
		return await CycleService(db).record_harvest(cycle_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{cycle_id}/growing", response_model=CultivationCycleRecord)
async def mark_growing(cycle_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> CultivationCycleRecord:
	try:
		return await CycleService(db).mark_growing(cycle_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{cycle_id}/stages/{stage}", response_model=CultivationCycleRecord)
async def advance_stage(
	cycle_id: uuid.UUID,
	stage: PipelineStageEnum,
	payload: StageAdvance,
	db: AsyncSession = Depends(get_db),
) -> CultivationCycleRecord:
	try:
		return await CycleService(db).advance_stage(cycle_id, stage, payload.on)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.delete("/{cycle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cycle(cycle_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> None:
	try:
		await CycleService(db).delete_cycle(cycle_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post(
	"/{cycle_id}/predictions",
	response_model=PredictionSlotRead,
	status_code=status.HTTP_202_ACCEPTED,
)
async def request_prediction(
	cycle_id: uuid.UUID,
	request: Request,
	background_tasks: BackgroundTasks,
	payload: PredictionRequest | None = None,
	db: AsyncSession = Depends(get_db),
) -> PredictionSlotRead:
	registry = _prediction_registry(request)
	language = (payload or PredictionRequest()).resolved_language(get_settings().default_language)
	try:
		token = await PredictionService(db, registry).begin(cycle_id)
	except Exception as exc:
		raise _map_error(exc) from exc

	background_tasks.add_task(_run_prediction, cycle_id, token, language, registry)
	return PredictionSlotRead(cycle_id=cycle_id, loading=True)


@router.get("/{cycle_id}/predictions", response_model=PredictionSlotRead)
async def get_prediction(
	cycle_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> PredictionSlotRead:
	try:
		slot = await PredictionService(db, _prediction_registry(request)).get_slot(cycle_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PredictionSlotRead.from_slot(cycle_id, slot)
