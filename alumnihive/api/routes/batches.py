"""
Batch endpoints.

A batch is the cohort of users sharing a college and graduation year.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, NotFoundError, to_http_exception
from alumnihive.db.models.user import User
from alumnihive.db.session import get_db
from alumnihive.schemas.batch import BatchCreate, BatchMembershipRequest, BatchUpdate
from alumnihive.services import batch_service
from alumnihive.services.batch_service import serialize_batch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/batches", tags=["Batches"])


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("")
def list_batches(
    college: Optional[str] = None,
    graduation_year: Optional[int] = Query(None, alias="graduationYear"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    try:
        batches, total = batch_service.list_batches(db, college, graduation_year, search, page, limit)
    except Exception as e:
        logger.error(f"Failed to list batches: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch batches")

    return {
        "batches": [serialize_batch(b) for b in batches],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


@router.get("/stats")
def batch_stats(db: Session = Depends(get_db)):
    try:
        return batch_service.get_batch_stats(db)
    except Exception as e:
        logger.error(f"Failed to compute batch stats: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch batch statistics")


@router.get("/college/{college}")
def batches_by_college(college: str, db: Session = Depends(get_db)):
    batches = batch_service.list_batches_by_college(db, college)
    return {"batches": [serialize_batch(b) for b in batches]}


@router.get("/{batch_id}")
def get_batch(batch_id: int, db: Session = Depends(get_db)):
    try:
        batch = batch_service.get_batch_or_404(db, batch_id)
    except AlumniHiveError as e:
        raise to_http_exception(e)
    return {"batch": serialize_batch(batch, include_members=True)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_batch(payload: BatchCreate, db: Session = Depends(get_db)):
    """Create the batch for (college, graduationYear), or return the existing one."""
    try:
        batch, created = batch_service.create_or_find_batch(
            db, payload.college, payload.graduation_year, payload.description
        )
        db.commit()
        db.refresh(batch)
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create batch: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create batch")

    return {
        "message": "Batch created successfully" if created else "Batch already exists",
        "batch": serialize_batch(batch),
    }


@router.put("/{batch_id}")
def update_batch(batch_id: int, payload: BatchUpdate, db: Session = Depends(get_db)):
    try:
        batch = batch_service.update_batch(db, batch_id, payload.description, payload.is_active)
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)
    return {"message": "Batch updated successfully", "batch": serialize_batch(batch)}


@router.delete("/{batch_id}")
def delete_batch(batch_id: int, db: Session = Depends(get_db)):
    try:
        batch_service.delete_batch(db, batch_id)
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete batch: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete batch")
    return {"message": "Batch deleted successfully"}


@router.post("/{batch_id}/members")
def add_member(batch_id: int, payload: BatchMembershipRequest, db: Session = Depends(get_db)):
    try:
        batch = batch_service.get_batch_or_404(db, batch_id)
        user = _get_user(db, payload.user_id)
        added = batch_service.add_user_to_batch(db, batch, user)
        db.commit()
        db.refresh(batch)
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)

    return {
        "message": "User added to batch" if added else "User is already a member of this batch",
        "batch": serialize_batch(batch),
    }


@router.delete("/{batch_id}/members/{user_id}")
def remove_member(batch_id: int, user_id: int, db: Session = Depends(get_db)):
    try:
        batch = batch_service.get_batch_or_404(db, batch_id)
        user = _get_user(db, user_id)
        removed = batch_service.remove_user_from_batch(db, batch, user)
        db.commit()
        db.refresh(batch)
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)

    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User is not a member of this batch")
    return {"message": "User removed from batch", "batch": serialize_batch(batch)}
