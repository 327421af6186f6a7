"""
Skills catalog used by profile forms and job postings.

The catalog is static data; it is cached for a day so the lookup table is
built once per process rather than per request.
"""
import logging
from typing import Dict, List, Optional

from alumnihive.core.cache import TTLCache, DAY_SECONDS

logger = logging.getLogger(__name__)

CATALOG_KEY = "skills"

SKILL_GROUPS: Dict[str, List[str]] = {
    "Programming Languages": [
        "JavaScript", "Python", "Java", "C#", "C++", "C", "PHP", "Ruby", "Go", "Rust",
        "Swift", "Kotlin", "Scala", "R", "MATLAB", "Perl", "Dart", "TypeScript",
    ],
    "Web Technologies": [
        "HTML", "CSS", "React", "Angular", "Vue.js", "Node.js", "Express.js", "Django",
        "Flask", "Spring", "Laravel", "ASP.NET", "jQuery", "Bootstrap", "Tailwind CSS",
    ],
    "Databases": [
        "MySQL", "PostgreSQL", "MongoDB", "Redis", "Oracle", "SQL Server", "SQLite",
        "Cassandra", "Elasticsearch", "DynamoDB", "Firebase",
    ],
    "Cloud & DevOps": [
        "AWS", "Azure", "Google Cloud Platform", "Docker", "Kubernetes", "Jenkins",
        "GitLab", "GitHub Actions", "Terraform", "Ansible", "Linux",
    ],
    "Data Science & AI": [
        "Machine Learning", "Deep Learning", "TensorFlow", "PyTorch", "scikit-learn",
        "Pandas", "NumPy", "Data Analysis", "Data Visualization", "Natural Language Processing",
        "Computer Vision", "Statistics",
    ],
    "Mobile Development": ["Android", "iOS", "React Native", "Flutter", "Xamarin"],
    "Design": ["UI Design", "UX Design", "Figma", "Adobe XD", "Photoshop", "Illustrator"],
    "Business & Management": [
        "Project Management", "Product Management", "Agile", "Scrum", "Business Analysis",
        "Marketing", "Sales", "Finance", "Consulting",
    ],
    "Soft Skills": [
        "Communication", "Leadership", "Teamwork", "Problem Solving", "Critical Thinking",
        "Time Management", "Public Speaking", "Mentoring",
    ],
}


def _slug(name: str) -> str:
    return (
        name.lower()
        .replace("c++", "cpp")
        .replace("c#", "csharp")
        .replace("&", "and")
        .replace(".", "")
        .replace(" ", "-")
    )


def build_catalog() -> List[Dict[str, str]]:
    catalog = []
    for category, names in SKILL_GROUPS.items():
        catalog.append({"id": _slug(category), "category": category, "name": category})
        catalog.extend({"id": _slug(name), "category": category, "name": name} for name in names)
    logger.info(f"Skills catalog built: {len(catalog)} entries")
    return catalog


class SkillsCatalog:
    """Skills lookup backed by a TTLCache."""

    def __init__(self, cache: Optional[TTLCache] = None, loader=build_catalog):
        self.cache = cache or TTLCache(ttl=DAY_SECONDS)
        self._loader = loader

    def all(self, category: Optional[str] = None) -> List[Dict[str, str]]:
        skills = self.cache.get_or_load(CATALOG_KEY, self._loader)
        if category:
            return [skill for skill in skills if skill["category"].lower() == category.lower()]
        return skills

    def search(self, query: str, limit: int = 20) -> List[Dict[str, str]]:
        term = (query or "").strip().lower()
        if len(term) < 2:
            return []
        matches = [skill for skill in self.all() if term in skill["name"].lower()]
        # Prefix matches first, then alphabetical
        matches.sort(key=lambda skill: (not skill["name"].lower().startswith(term), skill["name"].lower()))
        return matches[:limit]

    def categories(self) -> List[str]:
        return list(dict.fromkeys(skill["category"] for skill in self.all()))


skills_catalog = SkillsCatalog()
