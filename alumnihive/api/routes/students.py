"""
Student directory and profile endpoints.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.db.session import get_db
from alumnihive.schemas.profile import StudentProfileUpdate
from alumnihive.services import profile_service
from alumnihive.services.profile_service import serialize_student_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/students", tags=["Students"])


def _raise(db: Session, e: Exception, action: str):
    db.rollback()
    if isinstance(e, AlumniHiveError):
        raise to_http_exception(e)
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


@router.get("")
def list_students(
    major: Optional[str] = None,
    year: Optional[int] = Query(None, ge=1, le=6),
    looking_for_mentorship: bool = Query(False, alias="lookingForMentorship"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    try:
        profiles, total = profile_service.list_students(db, major, year, looking_for_mentorship, page, limit)
    except Exception as e:
        _raise(db, e, "fetch students")

    return {
        "students": [serialize_student_profile(p) for p in profiles],
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
def search_students(
    q: Optional[str] = None,
    major: Optional[str] = None,
    skills: Optional[str] = None,
    interests: Optional[str] = None,
    db: Session = Depends(get_db)
):
    try:
        profiles = profile_service.search_students(db, q, major, skills, interests)
    except Exception as e:
        _raise(db, e, "search students")
    return {"students": [serialize_student_profile(p) for p in profiles]}


@router.get("/mentorship")
def students_seeking_mentorship(interests: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        profiles = profile_service.list_students_seeking_mentorship(db, interests)
    except Exception as e:
        _raise(db, e, "fetch students looking for mentorship")
    return {"students": [serialize_student_profile(p) for p in profiles]}


@router.get("/user/{user_id}")
def get_student_by_user(user_id: int, db: Session = Depends(get_db)):
    try:
        profile = profile_service.get_student_profile_by_user(db, user_id)
    except Exception as e:
        _raise(db, e, "fetch student profile")
    return {"student": serialize_student_profile(profile)}


@router.put("/user/{user_id}")
def update_student_by_user(user_id: int, payload: StudentProfileUpdate, db: Session = Depends(get_db)):
    try:
        profile = profile_service.update_student_profile_by_user(db, user_id, payload.model_dump(exclude_unset=True))
    except Exception as e:
        _raise(db, e, "update student profile")
    return {"message": "Profile updated successfully", "student": serialize_student_profile(profile)}


@router.get("/{profile_id}")
def get_student(profile_id: int, db: Session = Depends(get_db)):
    try:
        profile = profile_service.get_student_profile(db, profile_id)
    except Exception as e:
        _raise(db, e, "fetch student")
    return {"student": serialize_student_profile(profile)}


@router.put("/{profile_id}")
def update_student(profile_id: int, payload: StudentProfileUpdate, db: Session = Depends(get_db)):
    try:
        profile = profile_service.update_student_profile(db, profile_id, payload.model_dump(exclude_unset=True))
    except Exception as e:
        _raise(db, e, "update student profile")
    return {"message": "Profile updated successfully", "student": serialize_student_profile(profile)}
