"""
Job posting endpoints.

Alumni post jobs to their batch. A posting may be locked behind a one-off
unlock payment, after which the applicant can see the application link and apply.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.job import (
    ApplicationStatusUpdate,
    JobApplyRequest,
    JobPostingCreate,
    JobPostingUpdate,
    JobUnlockRequest,
)
from alumnihive.services import job_posting_service, payment_service
from alumnihive.services.job_posting_service import serialize_application, serialize_job

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


def _raise(db: Session, e: Exception, action: str):
    db.rollback()
    if isinstance(e, AlumniHiveError):
        raise to_http_exception(e)
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


@router.get("")
def list_jobs(
    user_id: int = Query(..., alias="userId"),
    batch_id: Optional[int] = Query(None, alias="batchId"),
    job_type: Optional[str] = Query(None, alias="jobType"),
    experience_level: Optional[str] = Query(None, alias="experienceLevel"),
    is_locked: Optional[bool] = Query(None, alias="isLocked"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    try:
        jobs, total = job_posting_service.list_jobs(
            db, user_id, batch_id, job_type, experience_level, is_locked, page, limit
        )
    except Exception as e:
        _raise(db, e, "fetch job postings")

    return {
        "jobs": [serialize_job(job, viewer_id=user_id, db=db) for job in jobs],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_job(payload: JobPostingCreate, db: Session = Depends(get_db)):
    fields = payload.model_dump(exclude={"user_id", "batch_id"})
    try:
        job = job_posting_service.create_job(db, payload.user_id, payload.batch_id, fields)
    except Exception as e:
        _raise(db, e, "create job posting")
    return {"message": "Job posting created successfully", "job": serialize_job(job, viewer_id=payload.user_id)}


@router.get("/{job_id}")
def get_job(job_id: int, user_id: int = Query(..., alias="userId"), db: Session = Depends(get_db)):
    try:
        job = job_posting_service.view_job(db, job_id, user_id)
    except Exception as e:
        _raise(db, e, "fetch job posting")
    return {"job": serialize_job(job, viewer_id=user_id, db=db)}


@router.put("/{job_id}")
def update_job(job_id: int, payload: JobPostingUpdate, db: Session = Depends(get_db)):
    fields = payload.model_dump(exclude={"user_id"}, exclude_unset=True)
    try:
        job = job_posting_service.update_job(db, job_id, payload.user_id, fields)
    except Exception as e:
        _raise(db, e, "update job posting")
    return {"message": "Job posting updated successfully", "job": serialize_job(job, viewer_id=payload.user_id)}


@router.delete("/{job_id}")
def delete_job(job_id: int, user_id: int = Query(..., alias="userId"), db: Session = Depends(get_db)):
    try:
        job_posting_service.delete_job(db, job_id, user_id)
    except Exception as e:
        _raise(db, e, "delete job posting")
    return {"message": "Job posting deleted successfully"}


@router.post("/{job_id}/unlock")
def unlock_job(job_id: int, payload: JobUnlockRequest, db: Session = Depends(get_db)):
    """Unlock a posting with a verified checkout result."""
    try:
        result = payment_service.verify_job_unlock_payment(
            db,
            payload.order_id,
            payload.payment_id,
            payload.signature,
            job_id,
            payload.user_id,
            payload.amount,
        )
        job = job_posting_service.get_job_or_404(db, job_id)
    except Exception as e:
        _raise(db, e, "unlock job")
    return {"message": result["message"], "job": serialize_job(job, viewer_id=payload.user_id, db=db)}


@router.post("/{job_id}/apply", status_code=status.HTTP_201_CREATED)
def apply_for_job(job_id: int, payload: JobApplyRequest, db: Session = Depends(get_db)):
    try:
        application = job_posting_service.apply_for_job(
            db, job_id, payload.user_id, payload.cover_letter, payload.resume_url
        )
    except Exception as e:
        _raise(db, e, "submit application")
    return {"message": "Application submitted successfully", "application": serialize_application(application)}


@router.get("/{job_id}/applications")
def list_applications(job_id: int, user_id: int = Query(..., alias="userId"), db: Session = Depends(get_db)):
    try:
        applications = job_posting_service.list_applications(db, job_id, user_id)
    except Exception as e:
        _raise(db, e, "fetch applications")
    return {"applications": [serialize_application(a) for a in applications]}


@router.put("/{job_id}/applications/{application_id}")
def update_application_status(
    job_id: int,
    application_id: int,
    payload: ApplicationStatusUpdate,
    db: Session = Depends(get_db)
):
    try:
        application = job_posting_service.update_application_status(
            db, job_id, application_id, payload.user_id, payload.status.value
        )
    except Exception as e:
        _raise(db, e, "update application status")
    return {"message": "Application status updated", "application": serialize_application(application)}
