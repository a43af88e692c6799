"""Module lookup routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.records import ModuleRecord
from app.services.cycle_service import CycleService

router = APIRouter(prefix="/modules", tags=["modules"])


@router.get("/free", response_model=list[ModuleRecord])
async def list_free_modules(
	site_id: uuid.UUID,
	zone_id: uuid.UUID | None = None,
	db: AsyncSession = Depends(get_db),
) -> list[ModuleRecord]:
	try:
		return await CycleService(db).free_modules(site_id, zone_id)
	except Exception as exc:
		raise HTTPException(
			status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
			detail="Unexpected module lookup failure",
		) from exc
