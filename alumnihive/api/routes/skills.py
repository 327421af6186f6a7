from typing import Optional
from fastapi import APIRouter, Query

from alumnihive.services.skills_service import skills_catalog

router = APIRouter(prefix="/api/skills", tags=["Skills"])


@router.get("")
def list_skills(category: Optional[str] = None):
    return {"skills": skills_catalog.all(category)}


@router.get("/search")
def search_skills(q: str = Query(""), limit: int = Query(20, ge=1, le=100)):
    return {"skills": skills_catalog.search(q, limit)}


@router.get("/categories")
def list_categories():
    return {"categories": skills_catalog.categories()}
