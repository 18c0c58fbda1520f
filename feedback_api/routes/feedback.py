import math
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from .. import crud
from ..db import get_db
from ..schemas import FeedbackIn, FeedbackUpdate, Pagination, envelope, serialize
from ..validation import FeedbackId, Limit, Page, feedback_filters

router = APIRouter(tags=["Feedback"])


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content=envelope("Feedback not found", success=False))


@router.get("", summary="Get all feedbacks")
@router.get("/", include_in_schema=False)
async def list_feedbacks(
    filters: dict[str, Any] = Depends(feedback_filters),
    page: Page = 1,
    limit: Limit = 10,
    db: AsyncSession = Depends(get_db),
):
    rows = await crud.list_feedback(db, filters, offset=(page - 1) * limit, limit=limit)
    total = await crud.count_feedback(db, filters)
    pagination = Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))
    return envelope(
        "Feedbacks retrieved successfully",
        {
            "feedbacks": [serialize(r) for r in rows],
            "pagination": pagination.model_dump(by_alias=True),
        },
    )


@router.get("/{id}", summary="Get feedback by ID")
async def get_feedback(id: FeedbackId, db: AsyncSession = Depends(get_db)):
    row = await crud.get_feedback(db, id)
    if row is None:
        return _not_found()
    return envelope("Feedback retrieved successfully", serialize(row))


@router.post("", status_code=201, summary="Create new feedback")
@router.post("/", status_code=201, include_in_schema=False)
async def create_feedback(payload: FeedbackIn, db: AsyncSession = Depends(get_db)):
    row = await crud.create_feedback(db, payload)
    return envelope("Feedback created successfully", serialize(row))


@router.put("/{id}", summary="Update feedback")
async def update_feedback(id: FeedbackId, payload: FeedbackUpdate, db: AsyncSession = Depends(get_db)):
    if await crud.get_feedback(db, id) is None:
        return _not_found()
    row = await crud.update_feedback(db, id, payload.changes())
    return envelope("Feedback updated successfully", serialize(row))


@router.delete("/{id}", summary="Delete feedback")
async def delete_feedback(id: FeedbackId, db: AsyncSession = Depends(get_db)):
    if await crud.get_feedback(db, id) is None:
        return _not_found()
    await crud.delete_feedback(db, id)
    return envelope("Feedback deleted successfully")
