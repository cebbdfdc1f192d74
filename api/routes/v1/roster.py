"""Monthly roster endpoints."""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session_context
from api.services import roster as roster_service
from core.security import SessionContext
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Roster matrix of a month")
async def get_roster(
    year: int = Query(..., ge=1970, le=9998),
    month: int = Query(..., ge=1, le=12),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Rows: date, title, time range, location, a blank separator, then one row
    per slot index. Column 0 carries the row labels.
    """
    matrix = await roster_service.load_month_roster(db, ctx, year, month)
    return roster_service.serialize_roster(matrix, year, month)


@router.get("/export.csv", summary="Download the roster as CSV")
async def export_roster_csv(
    year: int = Query(..., ge=1970, le=9998),
    month: int = Query(..., ge=1, le=12),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    filename, content = await roster_service.export_month_roster_csv(db, ctx, year, month)
    return Response(
        # BOM so spreadsheet tools pick UTF-8 for accented names
        content="\ufeff" + content,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"
        },
    )
