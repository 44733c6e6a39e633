from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_selector
from app.core.config import settings
from app.models.quiz import RoundContent
from app.schemas.quiz import StatsOut
from app.services.round_builder import CatalogSelector, EmptyCatalogError, NoScreenshotError


router = APIRouter(prefix="/api/game", tags=["game"])


@router.get("/random", response_model=RoundContent)
async def random_round(
    option_count: Optional[int] = Query(default=None, ge=2, le=10),
    selector: CatalogSelector = Depends(get_selector),
):
    try:
        return selector.select_round(option_count=option_count or settings.OPTION_COUNT)
    except EmptyCatalogError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except NoScreenshotError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/stats", response_model=StatsOut)
async def catalog_stats(selector: CatalogSelector = Depends(get_selector)):
    return StatsOut(**selector.catalog.stats())
