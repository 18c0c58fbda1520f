import csv
import io
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import Response, StreamingResponse
from openpyxl import Workbook
from sqlalchemy.ext.asyncio import AsyncSession

from .. import crud
from ..db import get_db
from ..models import Feedback
from ..validation import feedback_filters

router = APIRouter(prefix="/export", tags=["Export"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADERS = ["ID", "Name", "Email", "Event Name", "Division", "Rating", "Comment", "Suggestion", "Status", "Created At"]


def _naive_utc(value: datetime) -> datetime:
    # Excel has no timezone support
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def row_values(row: Feedback) -> list[Any]:
    return [
        row.id,
        row.name,
        row.email,
        row.event_name,
        row.division.value,
        row.rating,
        row.comment or "",
        row.suggestion or "",
        row.status.value,
        _naive_utc(row.created_at),
    ]


def build_csv(rows: list[Feedback]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(HEADERS)
    for r in rows:
        values = row_values(r)
        values[-1] = values[-1].isoformat()
        w.writerow(values)
    return buf.getvalue()


def build_excel(rows: list[Feedback]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Feedback"

    ws.append(HEADERS)
    for r in rows:
        ws.append(row_values(r))

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _attachment(ext: str) -> dict[str, str]:
    filename = f"feedback_{datetime.now().strftime('%Y%m%d_%H%M%S')}.{ext}"
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/feedback.csv", summary="Export feedback as CSV")
async def export_feedback_csv(
    filters: dict[str, Any] = Depends(feedback_filters),
    db: AsyncSession = Depends(get_db),
):
    rows = await crud.export_feedback(db, filters)
    return StreamingResponse(iter([build_csv(rows)]), media_type="text/csv", headers=_attachment("csv"))


@router.get("/feedback.xlsx", summary="Export feedback as an Excel workbook")
async def export_feedback_xlsx(
    filters: dict[str, Any] = Depends(feedback_filters),
    db: AsyncSession = Depends(get_db),
):
    rows = await crud.export_feedback(db, filters)
    return Response(content=build_excel(rows), media_type=XLSX_MEDIA_TYPE, headers=_attachment("xlsx"))
