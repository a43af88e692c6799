"""Planting from cuttings and staged cascade deletion of cutting operations."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.cultivation import DeletionWorkflowRead, ImpactRead, PlantingCreate, PlantingRead
from app.services.cycle_service import CycleService
from app.services.deletion_service import DeletionService

router = APIRouter(prefix="/cutting-operations", tags=["cutting-operations"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected cutting operation failure",
	)


def _deletion_service(request: Request, db: AsyncSession) -> DeletionService:
	return DeletionService(db, getattr(request.app.state, "redis", None))


@router.post("/planting", response_model=PlantingRead, status_code=status.HTTP_201_CREATED)
async def plant_from_cuttings(payload: PlantingCreate, db: AsyncSession = Depends(get_db)) -> PlantingRead:
	try:
		plan = await CycleService(db).plant(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantingRead(operation=plan.operation, cycle=plan.cycle, module=plan.module)


@router.get("/{operation_id}/impact", response_model=ImpactRead)
async def get_deletion_impact(
	operation_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> ImpactRead:
	try:
		return await _deletion_service(request, db).get_impact(operation_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{operation_id}/deletion", response_model=DeletionWorkflowRead)
async def start_deletion(
	operation_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> DeletionWorkflowRead:
	try:
		return await _deletion_service(request, db).start(operation_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{operation_id}/deletion/next", response_model=DeletionWorkflowRead)
async def confirm_deletion_step(
	operation_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> DeletionWorkflowRead:
	try:
		return await _deletion_service(request, db).next(operation_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{operation_id}/deletion/cancel", response_model=DeletionWorkflowRead)
async def cancel_deletion(
	operation_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> DeletionWorkflowRead:
	try:
		return await _deletion_service(request, db).cancel(operation_id)
	except Exception as exc:
		raise _map_error(exc) from exc
