"""
Batch membership: users grouped by college and graduation year.
"""
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from alumnihive.core.errors import NotFoundError, ValidationError
from alumnihive.db.models.batch import Batch
from alumnihive.db.models.user import User, Role

logger = logging.getLogger(__name__)


def batch_name(college: str, graduation_year: int) -> str:
    return f"{college} - {graduation_year}"


def get_batch_or_404(db: Session, batch_id: int) -> Batch:
    batch = db.query(Batch).filter(Batch.id == batch_id).first()
    if not batch:
        raise NotFoundError("Batch not found")
    return batch


def create_or_find_batch(
    db: Session, college: str, graduation_year: int, description: Optional[str] = None
) -> Tuple[Batch, bool]:
    """Return the batch for (college, year), creating it if needed. Flushes, does not commit."""
    college = (college or "").strip()
    if not college or not graduation_year:
        raise ValidationError("College and graduation year are required")

    batch = db.query(Batch).filter(
        Batch.college == college,
        Batch.graduation_year == graduation_year,
    ).first()
    if batch:
        return batch, False

    batch = Batch(
        name=batch_name(college, graduation_year),
        college=college,
        graduation_year=graduation_year,
        description=description,
        alumni_count=0,
        student_count=0,
    )
    db.add(batch)
    db.flush()
    logger.info(f"Batch created: batch_id={batch.id}, name='{batch.name}'")
    return batch, True


def _adjust_count(batch: Batch, user: User, delta: int) -> None:
    if user.role == Role.ALUMNI:
        batch.alumni_count = max(0, batch.alumni_count + delta)
    elif user.role == Role.STUDENT:
        batch.student_count = max(0, batch.student_count + delta)


def add_user_to_batch(db: Session, batch: Batch, user: User) -> bool:
    """Add user to batch and bump the role count. Returns False if already a member."""
    if batch.has_member(user.id):
        return False
    batch.members.append(user)
    _adjust_count(batch, user, 1)
    user.batch_id = batch.id
    return True


def remove_user_from_batch(db: Session, batch: Batch, user: User) -> bool:
    if not batch.has_member(user.id):
        return False
    batch.members.remove(user)
    _adjust_count(batch, user, -1)
    if user.batch_id == batch.id:
        user.batch_id = None
    return True


def list_batches(
    db: Session,
    college: Optional[str] = None,
    graduation_year: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Batch], int]:
    query = db.query(Batch).filter(Batch.is_active.is_(True))
    if college:
        query = query.filter(Batch.college.ilike(f"%{college}%"))
    if graduation_year:
        query = query.filter(Batch.graduation_year == graduation_year)
    if search:
        query = query.filter(Batch.name.ilike(f"%{search}%"))

    total = query.count()
    batches = (
        query.order_by(Batch.graduation_year.desc(), Batch.college.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return batches, total


def list_batches_by_college(db: Session, college: str) -> List[Batch]:
    return (
        db.query(Batch)
        .filter(Batch.college == college, Batch.is_active.is_(True))
        .order_by(Batch.graduation_year.desc())
        .all()
    )


def update_batch(db: Session, batch_id: int, description: Optional[str] = None, is_active: Optional[bool] = None) -> Batch:
    batch = get_batch_or_404(db, batch_id)
    if description is not None:
        batch.description = description
    if is_active is not None:
        batch.is_active = is_active
    db.commit()
    db.refresh(batch)
    return batch


def delete_batch(db: Session, batch_id: int) -> None:
    batch = get_batch_or_404(db, batch_id)
    db.query(User).filter(User.batch_id == batch.id).update({"batch_id": None}, synchronize_session="fetch")
    db.delete(batch)
    db.commit()
    logger.info(f"Batch deleted: batch_id={batch_id}")


def get_batch_stats(db: Session) -> Dict:
    total_batches, total_alumni, total_students = db.query(
        func.count(Batch.id),
        func.coalesce(func.sum(Batch.alumni_count), 0),
        func.coalesce(func.sum(Batch.student_count), 0),
    ).filter(Batch.is_active.is_(True)).one()

    colleges = (
        db.query(Batch.college, func.count(Batch.id).label("batches"))
        .filter(Batch.is_active.is_(True))
        .group_by(Batch.college)
        .order_by(func.count(Batch.id).desc())
        .all()
    )

    return {
        "totalBatches": int(total_batches),
        "totalAlumni": int(total_alumni),
        "totalStudents": int(total_students),
        "totalColleges": len(colleges),
        "topColleges": [{"college": college, "batches": count} for college, count in colleges[:10]],
    }


def serialize_batch(batch: Batch, include_members: bool = False) -> Dict:
    data = {
        "id": batch.id,
        "name": batch.name,
        "college": batch.college,
        "graduationYear": batch.graduation_year,
        "description": batch.description,
        "alumniCount": batch.alumni_count,
        "studentCount": batch.student_count,
        "totalMembers": batch.total_members,
        "isActive": batch.is_active,
    }
    if include_members:
        data["members"] = [
            {"id": member.id, "name": member.full_name, "role": member.role.value}
            for member in batch.members
        ]
    return data
