"""
Job postings, unlocks and applications.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from alumnihive.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from alumnihive.db.models.job_posting import (
    ApplicationStatus,
    ExperienceLevel,
    JobApplication,
    JobPosting,
    JobType,
    JobUnlock,
)
from alumnihive.db.models.user import User, Role
from alumnihive.services.batch_service import get_batch_or_404

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "title", "description", "company", "location", "job_type", "experience_level",
    "salary_min", "salary_max", "salary_currency", "skills", "requirements", "benefits",
    "is_active", "is_locked", "unlock_price", "application_link", "application_deadline",
    "max_applications",
}

NULLABLE_FIELDS = {"salary_min", "salary_max", "application_link", "application_deadline", "max_applications"}


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_job_or_404(db: Session, job_id: int) -> JobPosting:
    job = db.query(JobPosting).filter(JobPosting.id == job_id).first()
    if not job:
        raise NotFoundError("Job posting not found")
    return job


def _require_poster(job: JobPosting, user_id: int, message: str) -> None:
    if job.posted_by != user_id:
        raise PermissionDeniedError(message)


def create_job(db: Session, user_id: int, batch_id: int, fields: Dict) -> JobPosting:
    user = get_user_or_404(db, user_id)
    if user.role != Role.ALUMNI:
        raise PermissionDeniedError("Only alumni can post jobs")

    batch = get_batch_or_404(db, batch_id)
    if not batch.has_member(user.id):
        raise PermissionDeniedError("Access denied. You are not a member of this batch.")

    if fields.get("is_locked") and not fields.get("unlock_price"):
        raise ValidationError("Locked jobs need an unlock price")

    job = JobPosting(posted_by=user.id, batch_id=batch.id, **{
        key: value for key, value in fields.items() if key in UPDATABLE_FIELDS
    })
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info(f"Job posting created: job_id={job.id}, posted_by={user.id}, batch_id={batch.id}")
    return job


def list_jobs(
    db: Session,
    user_id: int,
    batch_id: Optional[int] = None,
    job_type: Optional[str] = None,
    experience_level: Optional[str] = None,
    is_locked: Optional[bool] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[JobPosting], int]:
    """
    Active postings visible to user_id.

    Alumni see their own batch only. Students and admins see everything, or
    one batch when batch_id is given.
    """
    user = get_user_or_404(db, user_id)
    query = db.query(JobPosting).filter(JobPosting.is_active.is_(True))

    if batch_id is not None:
        batch = get_batch_or_404(db, batch_id)
        if user.role == Role.ALUMNI and not batch.has_member(user.id):
            raise PermissionDeniedError("Access denied. You are not authorized to view this batch.")
        query = query.filter(JobPosting.batch_id == batch.id)
    elif user.role == Role.ALUMNI:
        query = query.filter(JobPosting.batch_id == user.batch_id)

    try:
        if job_type:
            query = query.filter(JobPosting.job_type == JobType(job_type))
        if experience_level:
            query = query.filter(JobPosting.experience_level == ExperienceLevel(experience_level))
    except ValueError:
        raise ValidationError("Invalid job filter")
    if is_locked is not None:
        query = query.filter(JobPosting.is_locked.is_(is_locked))

    total = query.count()
    jobs = (
        query.order_by(JobPosting.created_at.desc(), JobPosting.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return jobs, total


def view_job(db: Session, job_id: int, user_id: int) -> JobPosting:
    """Fetch a posting for display and count the view."""
    user = get_user_or_404(db, user_id)
    job = get_job_or_404(db, job_id)

    if user.role == Role.ALUMNI and not job.batch.has_member(user.id):
        raise PermissionDeniedError("Access denied. You are not a member of this batch.")

    job.views = (job.views or 0) + 1
    db.commit()
    db.refresh(job)
    return job


def update_job(db: Session, job_id: int, user_id: int, fields: Dict) -> JobPosting:
    job = get_job_or_404(db, job_id)
    _require_poster(job, user_id, "You can only update your own job postings")

    # null is only meaningful for the optional columns; elsewhere it means "leave as is"
    changes = {
        key: value for key, value in fields.items()
        if key in UPDATABLE_FIELDS and (value is not None or key in NULLABLE_FIELDS)
    }

    is_locked = changes.get("is_locked", job.is_locked)
    unlock_price = changes.get("unlock_price", job.unlock_price)
    if is_locked and not unlock_price:
        raise ValidationError("Locked jobs need an unlock price")

    salary_min = changes.get("salary_min", job.salary_min)
    salary_max = changes.get("salary_max", job.salary_max)
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise ValidationError("salaryMin cannot exceed salaryMax")

    for key, value in changes.items():
        setattr(job, key, value)
    db.commit()
    db.refresh(job)
    return job


def delete_job(db: Session, job_id: int, user_id: int) -> None:
    job = get_job_or_404(db, job_id)
    _require_poster(job, user_id, "You can only delete your own job postings")
    db.delete(job)
    db.commit()
    logger.info(f"Job posting deleted: job_id={job_id}, user_id={user_id}")


def record_unlock(db: Session, job: JobPosting, user_id: int, payment_id: str, amount: int) -> JobUnlock:
    """Append an unlock row. Does not commit."""
    unlock = JobUnlock(user_id=user_id, payment_id=payment_id, amount=amount)
    job.unlocks.append(unlock)
    return unlock


def ensure_unlockable(job: JobPosting, amount: int) -> None:
    """Raises ValidationError when a verified payment cannot unlock this posting."""
    if not job.is_locked:
        raise ValidationError("This job is already unlocked")
    if amount < job.unlock_price:
        raise ValidationError("Insufficient payment amount")


def apply_for_job(
    db: Session,
    job_id: int,
    user_id: int,
    cover_letter: Optional[str] = None,
    resume_url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> JobApplication:
    now = now or datetime.utcnow()
    job = get_job_or_404(db, job_id)
    get_user_or_404(db, user_id)

    if job.is_locked and not job.is_unlocked_by(user_id):
        raise PermissionDeniedError(
            "You need to unlock this job before applying",
            requiresUnlock=True,
            unlockPrice=job.unlock_price,
        )

    already = db.query(JobApplication).filter(
        JobApplication.job_id == job.id,
        JobApplication.user_id == user_id,
    ).first()
    if already:
        raise ValidationError("You have already applied for this job")
    if job.application_deadline and job.application_deadline < now:
        raise ValidationError("Application deadline has passed")
    if job.max_applications and job.current_applications >= job.max_applications:
        raise ValidationError("Maximum applications reached")

    application = JobApplication(
        job_id=job.id,
        user_id=user_id,
        status=ApplicationStatus.PENDING,
        cover_letter=cover_letter,
        resume_url=resume_url,
    )
    db.add(application)
    job.current_applications = (job.current_applications or 0) + 1
    db.commit()
    db.refresh(application)
    logger.info(f"Job application submitted: job_id={job_id}, user_id={user_id}")
    return application


def list_applications(db: Session, job_id: int, user_id: int) -> List[JobApplication]:
    job = get_job_or_404(db, job_id)
    _require_poster(job, user_id, "You can only view applications for your own job postings")
    return list(job.applications)


def update_application_status(
    db: Session, job_id: int, application_id: int, user_id: int, status: str
) -> JobApplication:
    try:
        new_status = ApplicationStatus(status)
    except ValueError:
        raise ValidationError("Invalid application status")

    job = get_job_or_404(db, job_id)
    _require_poster(job, user_id, "You can only update applications for your own job postings")

    application = db.query(JobApplication).filter(
        JobApplication.id == application_id,
        JobApplication.job_id == job.id,
    ).first()
    if not application:
        raise NotFoundError("Application not found")

    application.status = new_status
    db.commit()
    db.refresh(application)
    return application


def serialize_job(job: JobPosting, viewer_id: Optional[int] = None, db: Optional[Session] = None) -> Dict:
    unlocked = viewer_id is not None and (job.posted_by == viewer_id or job.is_unlocked_by(viewer_id))
    has_applied = False
    if viewer_id is not None and db is not None:
        has_applied = db.query(JobApplication.id).filter(
            JobApplication.job_id == job.id,
            JobApplication.user_id == viewer_id,
        ).first() is not None

    return {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "company": job.company,
        "location": job.location,
        "jobType": job.job_type.value,
        "experienceLevel": job.experience_level.value,
        "salary": {"min": job.salary_min, "max": job.salary_max, "currency": job.salary_currency},
        "skills": job.skills or [],
        "requirements": job.requirements or [],
        "benefits": job.benefits or [],
        "postedBy": job.posted_by,
        "batchId": job.batch_id,
        "isActive": job.is_active,
        "isLocked": job.is_locked,
        "unlockPrice": job.unlock_price,
        "currency": job.currency,
        "applicationLink": job.application_link if (not job.is_locked or unlocked) else None,
        "applicationDeadline": job.application_deadline.isoformat() if job.application_deadline else None,
        "maxApplications": job.max_applications,
        "currentApplications": job.current_applications,
        "views": job.views,
        "isUnlockedByCurrentUser": unlocked,
        "hasUserApplied": has_applied,
        "createdAt": job.created_at.isoformat() if job.created_at else None,
    }


def serialize_application(application: JobApplication) -> Dict:
    return {
        "id": application.id,
        "jobId": application.job_id,
        "userId": application.user_id,
        "applicantName": application.applicant.full_name if application.applicant else None,
        "status": application.status.value,
        "coverLetter": application.cover_letter,
        "resumeUrl": application.resume_url,
        "appliedAt": application.applied_at.isoformat() if application.applied_at else None,
    }
