import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import (
    DataError,
    DBAPIError,
    IntegrityError,
    NoResultFound,
    SQLAlchemyError,
    StatementError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import InvalidInput, NotFound, StoreFailure, UniqueViolation
from .models import Feedback, Status
from .schemas import FeedbackIn

logger = logging.getLogger(__name__)

UNIQUE_SQLSTATE = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code == UNIQUE_SQLSTATE or "unique" in str(orig).lower()


@asynccontextmanager
async def store_errors(db: AsyncSession) -> AsyncIterator[None]:
    """Roll back and re-raise SQLAlchemy errors as StoreError variants."""
    try:
        yield
    except IntegrityError as exc:
        await db.rollback()
        if _is_unique_violation(exc):
            raise UniqueViolation(str(exc.orig)) from exc
        raise StoreFailure(str(exc.orig)) from exc
    except DataError as exc:
        await db.rollback()
        raise InvalidInput(str(exc.orig)) from exc
    except DBAPIError as exc:
        await db.rollback()
        raise StoreFailure(str(exc.orig)) from exc
    except StatementError as exc:
        # raised before reaching the driver, e.g. a value the column type can't bind
        await db.rollback()
        raise InvalidInput(str(exc)) from exc
    except NoResultFound as exc:
        await db.rollback()
        raise NotFound(str(exc)) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreFailure(str(exc)) from exc


def _filtered(stmt, filters: dict[str, Any]):
    for column, value in filters.items():
        stmt = stmt.where(getattr(Feedback, column) == value)
    return stmt


def _newest_first(stmt):
    return stmt.order_by(Feedback.created_at.desc(), Feedback.id.desc())


async def list_feedback(db: AsyncSession, filters: dict[str, Any], offset: int, limit: int) -> list[Feedback]:
    stmt = _newest_first(_filtered(select(Feedback), filters)).offset(offset).limit(limit)
    async with store_errors(db):
        result = await db.scalars(stmt)
        return list(result.all())


async def count_feedback(db: AsyncSession, filters: dict[str, Any]) -> int:
    stmt = _filtered(select(func.count()).select_from(Feedback), filters)
    async with store_errors(db):
        return int(await db.scalar(stmt) or 0)


async def export_feedback(db: AsyncSession, filters: dict[str, Any]) -> list[Feedback]:
    async with store_errors(db):
        result = await db.scalars(_newest_first(_filtered(select(Feedback), filters)))
        return list(result.all())


async def get_feedback(db: AsyncSession, feedback_id: int) -> Optional[Feedback]:
    async with store_errors(db):
        return await db.get(Feedback, feedback_id)


async def create_feedback(db: AsyncSession, data: FeedbackIn) -> Feedback:
    row = Feedback(
        name=data.name,
        email=str(data.email),
        event_name=data.event_name,
        division=data.division,
        rating=data.rating,
        comment=data.comment,
        suggestion=data.suggestion,
        status=Status.open,
    )
    async with store_errors(db):
        db.add(row)
        await db.commit()
        await db.refresh(row)
    logger.info("Created feedback %s for event %r", row.id, row.event_name)
    return row


async def update_feedback(db: AsyncSession, feedback_id: int, changes: dict[str, Any]) -> Feedback:
    async with store_errors(db):
        result = await db.execute(select(Feedback).where(Feedback.id == feedback_id))
        row = result.scalar_one()
        for key, value in changes.items():
            setattr(row, key, value)
        await db.commit()
        await db.refresh(row)
    logger.info("Updated feedback %s: %s", feedback_id, sorted(changes))
    return row


async def delete_feedback(db: AsyncSession, feedback_id: int) -> None:
    async with store_errors(db):
        result = await db.execute(delete(Feedback).where(Feedback.id == feedback_id))
        await db.commit()
    if result.rowcount == 0:
        raise NotFound(f"No feedback with id {feedback_id}")
    logger.info("Deleted feedback %s", feedback_id)
