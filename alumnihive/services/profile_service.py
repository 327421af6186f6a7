"""
Alumni and student profiles: the directory, search and profile updates.

Profiles are created with placeholder values at signup and filled in later
through the profile-completion forms.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from alumnihive.core.errors import NotFoundError, ValidationError
from alumnihive.db.models.profile import NOT_SPECIFIED, AlumniProfile, StudentProfile
from alumnihive.db.models.user import User, Role
from alumnihive.services.batch_service import add_user_to_batch, create_or_find_batch, remove_user_from_batch

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20

IMPACT_TARGETS = {
    "studentsMentored": (15, "Helping students achieve their goals"),
    "eventsHosted": (8, "Creating networking opportunities"),
    "profileViews": (100, "Building your professional presence"),
}
IMPACT_COLUMNS = {
    "studentsMentored": "students_mentored",
    "eventsHosted": "events_hosted",
    "profileViews": "profile_views",
}


def split_csv(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def _overlaps(values: Optional[Iterable[str]], wanted: List[str]) -> bool:
    wanted_lower = {w.lower() for w in wanted}
    return any(v.lower() in wanted_lower for v in (values or []))


def _page(items: List, page: int, limit: int) -> Tuple[List, int]:
    return items[(page - 1) * limit:page * limit], len(items)


def _get_user(db: Session, user_id: int, role: Role, label: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if user.role != role:
        raise ValidationError(f"User is not {label}")
    return user


def _apply_fields(profile, fields: Dict) -> None:
    for key, value in fields.items():
        if value is None or not hasattr(profile, key) or key in ("id", "user_id"):
            continue
        setattr(profile, key, value)


def create_default_profile(db: Session, user: User, now: Optional[datetime] = None):
    """Placeholder profile for a new user. Flushes, does not commit. Admins get none."""
    now = now or datetime.utcnow()
    if user.role == Role.ALUMNI:
        profile = AlumniProfile(
            user_id=user.id,
            graduation_year=user.graduation_year or now.year,
            current_company=NOT_SPECIFIED,
            current_position=NOT_SPECIFIED,
            bio="",
        )
    elif user.role == Role.STUDENT:
        graduation_year = user.graduation_year or now.year + 3
        profile = StudentProfile(
            user_id=user.id,
            student_number=f"STU{user.id:06d}",
            current_year=min(6, max(1, graduation_year - now.year + 4)),
            expected_graduation_year=graduation_year,
            gpa=0,
        )
    else:
        return None

    db.add(profile)
    db.flush()
    return profile


# ============================================
# ✅ ALUMNI
# ============================================

def _alumni_query(db: Session, industry: Optional[str] = None, location: Optional[str] = None) -> Query:
    query = db.query(AlumniProfile)
    if industry:
        query = query.filter(AlumniProfile.industry.ilike(f"%{industry}%"))
    if location:
        query = query.filter(AlumniProfile.city.ilike(f"%{location}%"))
    return query.order_by(AlumniProfile.created_at.desc(), AlumniProfile.id.desc())


def list_alumni(
    db: Session,
    industry: Optional[str] = None,
    location: Optional[str] = None,
    skills: Optional[str] = None,
    available_for_mentoring: bool = False,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[AlumniProfile], int]:
    query = _alumni_query(db, industry, location)
    if available_for_mentoring:
        query = query.filter(AlumniProfile.is_available_for_mentoring.is_(True))

    wanted = split_csv(skills)
    if not wanted:
        total = query.count()
        return query.offset((page - 1) * limit).limit(limit).all(), total
    return _page([p for p in query.all() if _overlaps(p.skills, wanted)], page, limit)


def search_alumni(
    db: Session,
    q: Optional[str] = None,
    industry: Optional[str] = None,
    location: Optional[str] = None,
    skills: Optional[str] = None,
) -> List[AlumniProfile]:
    """Match q against name, company, position and bio; at most SEARCH_LIMIT results."""
    query = _alumni_query(db, industry, location)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.join(User, AlumniProfile.user_id == User.id).filter(or_(
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
            AlumniProfile.current_company.ilike(pattern),
            AlumniProfile.current_position.ilike(pattern),
            AlumniProfile.bio.ilike(pattern),
        ))

    wanted = split_csv(skills)
    if not wanted:
        return query.limit(SEARCH_LIMIT).all()
    return [p for p in query.all() if _overlaps(p.skills, wanted)][:SEARCH_LIMIT]


def list_mentors(db: Session, interests: Optional[str] = None) -> List[AlumniProfile]:
    query = _alumni_query(db).filter(AlumniProfile.is_available_for_mentoring.is_(True))
    wanted = split_csv(interests)
    if not wanted:
        return query.limit(SEARCH_LIMIT).all()
    return [p for p in query.all() if _overlaps(p.mentoring_interests, wanted)][:SEARCH_LIMIT]


def get_alumni_profile(db: Session, profile_id: int) -> AlumniProfile:
    profile = db.query(AlumniProfile).filter(AlumniProfile.id == profile_id).first()
    if not profile:
        raise NotFoundError("Alumni not found")
    return profile


def get_alumni_profile_by_user(db: Session, user_id: int) -> AlumniProfile:
    profile = db.query(AlumniProfile).filter(AlumniProfile.user_id == user_id).first()
    if not profile:
        raise NotFoundError("Alumni profile not found")
    return profile


def _apply_alumni_fields(profile: AlumniProfile, fields: Dict) -> None:
    fields = dict(fields)
    location = fields.pop("location", None) or {}
    for key in ("city", "state", "country"):
        if location.get(key):
            setattr(profile, key, location[key])
    _apply_fields(profile, fields)


def update_alumni_profile(db: Session, profile_id: int, fields: Dict) -> AlumniProfile:
    profile = get_alumni_profile(db, profile_id)
    _apply_alumni_fields(profile, fields)
    db.commit()
    db.refresh(profile)
    return profile


def _sync_alumni_batch(db: Session, user: User, graduation_year: int) -> None:
    """Move the alumni into the batch for their college and graduation year."""
    if not user.college or not graduation_year:
        return
    batch, _ = create_or_find_batch(db, user.college, graduation_year)
    if user.batch_id == batch.id:
        return
    if user.batch is not None:
        remove_user_from_batch(db, user.batch, user)
    add_user_to_batch(db, batch, user)
    logger.info(f"Alumni moved to batch: user_id={user.id}, batch_id={batch.id}")


def upsert_alumni_profile_by_user(db: Session, user_id: int, fields: Dict) -> AlumniProfile:
    """Update the alumni's profile, creating it first when missing, and keep their batch in step."""
    user = _get_user(db, user_id, Role.ALUMNI, "an alumni")
    profile = db.query(AlumniProfile).filter(AlumniProfile.user_id == user.id).first()
    if profile is None:
        profile = create_default_profile(db, user)

    _apply_alumni_fields(profile, fields)
    if profile.graduation_year != user.graduation_year:
        user.graduation_year = profile.graduation_year
    db.flush()
    _sync_alumni_batch(db, user, profile.graduation_year)

    db.commit()
    db.refresh(profile)
    return profile


def get_impact_metrics(db: Session, user_id: int) -> Dict:
    profile = get_alumni_profile_by_user(db, user_id)
    metrics = {
        name: {"current": getattr(profile, IMPACT_COLUMNS[name]) or 0, "target": target, "description": description}
        for name, (target, description) in IMPACT_TARGETS.items()
    }
    metrics["profileInfo"] = {
        "jobTitle": profile.current_position or NOT_SPECIFIED,
        "company": profile.current_company or NOT_SPECIFIED,
        "location": f"{profile.city}, {profile.state}",
        "country": profile.country,
        "education": profile.branch,
        "graduationYear": f"Class of {profile.graduation_year}",
    }
    return metrics


def increment_impact_metric(db: Session, user_id: int, metric: str, increment: int = 1) -> int:
    column = IMPACT_COLUMNS.get(metric)
    if column is None:
        raise ValidationError("Invalid metric type")
    profile = get_alumni_profile_by_user(db, user_id)

    # Single UPDATE so concurrent increments do not overwrite each other
    db.query(AlumniProfile).filter(AlumniProfile.id == profile.id).update(
        {column: getattr(AlumniProfile, column) + increment},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(profile)
    return getattr(profile, column)


# ============================================
# ✅ STUDENTS
# ============================================

def _student_query(db: Session, major: Optional[str] = None) -> Query:
    query = db.query(StudentProfile)
    if major:
        query = query.filter(StudentProfile.major.ilike(f"%{major}%"))
    return query.order_by(StudentProfile.created_at.desc(), StudentProfile.id.desc())


def list_students(
    db: Session,
    major: Optional[str] = None,
    year: Optional[int] = None,
    looking_for_mentorship: bool = False,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[StudentProfile], int]:
    query = _student_query(db, major)
    if year is not None:
        query = query.filter(StudentProfile.current_year == year)
    if looking_for_mentorship:
        query = query.filter(StudentProfile.is_looking_for_mentorship.is_(True))

    total = query.count()
    return query.offset((page - 1) * limit).limit(limit).all(), total


def search_students(
    db: Session,
    q: Optional[str] = None,
    major: Optional[str] = None,
    skills: Optional[str] = None,
    interests: Optional[str] = None,
) -> List[StudentProfile]:
    query = _student_query(db, major)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.join(User, StudentProfile.user_id == User.id).filter(or_(
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
            StudentProfile.major.ilike(pattern),
            StudentProfile.minor.ilike(pattern),
        ))

    wanted_skills = split_csv(skills)
    wanted_interests = split_csv(interests)
    if not wanted_skills and not wanted_interests:
        return query.limit(SEARCH_LIMIT).all()

    matches = [
        p for p in query.all()
        if (not wanted_skills or _overlaps(p.skills, wanted_skills))
        and (not wanted_interests or _overlaps(p.interests, wanted_interests))
    ]
    return matches[:SEARCH_LIMIT]


def list_students_seeking_mentorship(db: Session, interests: Optional[str] = None) -> List[StudentProfile]:
    query = _student_query(db).filter(StudentProfile.is_looking_for_mentorship.is_(True))
    wanted = split_csv(interests)
    if not wanted:
        return query.limit(SEARCH_LIMIT).all()
    return [p for p in query.all() if _overlaps(p.mentorship_interests, wanted)][:SEARCH_LIMIT]


def get_student_profile(db: Session, profile_id: int) -> StudentProfile:
    profile = db.query(StudentProfile).filter(StudentProfile.id == profile_id).first()
    if not profile:
        raise NotFoundError("Student not found")
    return profile


def get_student_profile_by_user(db: Session, user_id: int) -> StudentProfile:
    profile = db.query(StudentProfile).filter(StudentProfile.user_id == user_id).first()
    if not profile:
        raise NotFoundError("Student profile not found for this user")
    return profile


def update_student_profile(db: Session, profile_id: int, fields: Dict) -> StudentProfile:
    profile = get_student_profile(db, profile_id)
    _apply_fields(profile, fields)
    db.commit()
    db.refresh(profile)
    return profile


def update_student_profile_by_user(db: Session, user_id: int, fields: Dict) -> StudentProfile:
    """Students are not moved between batches here; they only browse their college's batches."""
    profile = get_student_profile_by_user(db, user_id)
    _apply_fields(profile, fields)
    db.commit()
    db.refresh(profile)
    return profile


# ============================================
# ✅ SERIALIZERS
# ============================================

def _user_summary(user: Optional[User]) -> Optional[Dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "profilePicture": user.profile_picture,
        "college": user.college,
    }


def serialize_alumni_profile(profile: AlumniProfile) -> Dict:
    return {
        "id": profile.id,
        "userId": profile.user_id,
        "user": _user_summary(profile.user),
        "graduationYear": profile.graduation_year,
        "degree": profile.degree,
        "branch": profile.branch,
        "currentCompany": profile.current_company,
        "currentPosition": profile.current_position,
        "industry": profile.industry,
        "location": {"city": profile.city, "state": profile.state, "country": profile.country},
        "bio": profile.bio,
        "skills": profile.skills or [],
        "experience": profile.experience or [],
        "education": profile.education or [],
        "socialLinks": profile.social_links or {},
        "achievements": profile.achievements or [],
        "isAvailableForMentoring": profile.is_available_for_mentoring,
        "mentoringInterests": profile.mentoring_interests or [],
        "studentsMentored": profile.students_mentored,
        "eventsHosted": profile.events_hosted,
        "profileViews": profile.profile_views,
    }


def serialize_student_profile(profile: StudentProfile) -> Dict:
    return {
        "id": profile.id,
        "userId": profile.user_id,
        "user": _user_summary(profile.user),
        "studentId": profile.student_number,
        "currentYear": profile.current_year,
        "expectedGraduationYear": profile.expected_graduation_year,
        "major": profile.major,
        "minor": profile.minor,
        "gpa": profile.gpa,
        "academicStanding": profile.academic_standing.value,
        "interests": profile.interests or [],
        "careerGoals": profile.career_goals or [],
        "skills": profile.skills or [],
        "projects": profile.projects or [],
        "internships": profile.internships or [],
        "certifications": profile.certifications or [],
        "socialLinks": profile.social_links or {},
        "achievements": profile.achievements or [],
        "isLookingForMentorship": profile.is_looking_for_mentorship,
        "mentorshipInterests": profile.mentorship_interests or [],
    }
