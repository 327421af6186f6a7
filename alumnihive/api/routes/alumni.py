"""
Alumni directory and profile endpoints.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.profile import AlumniProfileUpdate, ImpactMetricUpdate
from alumnihive.services import mentorship_service, profile_service
from alumnihive.services.profile_service import serialize_alumni_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/alumni", tags=["Alumni"])


def _raise(db: Session, e: Exception, action: str):
    db.rollback()
    if isinstance(e, AlumniHiveError):
        raise to_http_exception(e)
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


@router.get("")
def list_alumni(
    industry: Optional[str] = None,
    location: Optional[str] = None,
    skills: Optional[str] = Query(None, description="Comma-separated"),
    available_for_mentoring: bool = Query(False, alias="availableForMentoring"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    try:
        profiles, total = profile_service.list_alumni(
            db, industry, location, skills, available_for_mentoring, page, limit
        )
    except Exception as e:
        _raise(db, e, "fetch alumni")

    return {
        "alumni": [serialize_alumni_profile(p) for p in profiles],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
            "hasNext": page * limit < total,
            "hasPrev": page > 1,
        },
    }


@router.get("/search")
def search_alumni(
    q: Optional[str] = None,
    industry: Optional[str] = None,
    location: Optional[str] = None,
    skills: Optional[str] = None,
    db: Session = Depends(get_db)
):
    try:
        profiles = profile_service.search_alumni(db, q, industry, location, skills)
    except Exception as e:
        _raise(db, e, "search alumni")
    return {"alumni": [serialize_alumni_profile(p) for p in profiles]}


@router.get("/mentors")
def list_mentors(interests: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        profiles = profile_service.list_mentors(db, interests)
    except Exception as e:
        _raise(db, e, "fetch mentors")
    return {"mentors": [serialize_alumni_profile(p) for p in profiles]}


@router.get("/user/{user_id}")
def get_alumni_by_user(user_id: int, db: Session = Depends(get_db)):
    try:
        profile = profile_service.get_alumni_profile_by_user(db, user_id)
    except Exception as e:
        _raise(db, e, "fetch alumni profile")
    return {"alumni": serialize_alumni_profile(profile)}


@router.put("/user/{user_id}")
def update_alumni_by_user(user_id: int, payload: AlumniProfileUpdate, db: Session = Depends(get_db)):
    """Profile-completion form: creates the profile when missing and moves the alumni to the matching batch."""
    try:
        profile = profile_service.upsert_alumni_profile_by_user(db, user_id, payload.model_dump(exclude_unset=True))
    except Exception as e:
        _raise(db, e, "update alumni profile")
    return {"message": "Profile updated successfully", "alumni": serialize_alumni_profile(profile)}


@router.get("/user/{user_id}/impact")
def impact_metrics(user_id: int, db: Session = Depends(get_db)):
    try:
        return profile_service.get_impact_metrics(db, user_id)
    except Exception as e:
        _raise(db, e, "fetch impact metrics")


@router.post("/user/{user_id}/impact")
def increment_impact_metric(user_id: int, payload: ImpactMetricUpdate, db: Session = Depends(get_db)):
    try:
        value = profile_service.increment_impact_metric(db, user_id, payload.type, payload.increment)
    except Exception as e:
        _raise(db, e, "update impact metrics")
    return {"message": f"{payload.type} updated successfully", "newValue": value}


@router.get("/user/{user_id}/opportunities")
def mentorship_opportunities(user_id: int, db: Session = Depends(get_db)):
    """Pending mentorship requests for this alumni, grouped by category."""
    try:
        return {"opportunities": mentorship_service.list_opportunities(db, user_id)}
    except Exception as e:
        _raise(db, e, "fetch mentorship opportunities")


@router.get("/{profile_id}")
def get_alumni(profile_id: int, db: Session = Depends(get_db)):
    try:
        profile = profile_service.get_alumni_profile(db, profile_id)
    except Exception as e:
        _raise(db, e, "fetch alumni")
    return {"alumni": serialize_alumni_profile(profile)}


@router.put("/{profile_id}")
def update_alumni(profile_id: int, payload: AlumniProfileUpdate, db: Session = Depends(get_db)):
    try:
        profile = profile_service.update_alumni_profile(db, profile_id, payload.model_dump(exclude_unset=True))
    except Exception as e:
        _raise(db, e, "update alumni profile")
    return {"message": "Profile updated successfully", "alumni": serialize_alumni_profile(profile)}
