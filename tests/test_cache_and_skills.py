"""
Tests for the TTL cache and the skills catalog built on it.
"""
import pytest

from alumnihive.core.cache import TTLCache
from alumnihive.services.skills_service import SkillsCatalog, build_catalog


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(ttl=60, clock=clock)
    cache.set("k", "v")

    clock.now += 59
    assert cache.get("k") == "v"
    assert "k" in cache

    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_get_or_load_calls_loader_once_per_ttl():
    clock = FakeClock()
    cache = TTLCache(ttl=10, clock=clock)
    calls = []

    def loader():
        calls.append(clock.now)
        return ["x"]

    cache.get_or_load("k", loader)
    cache.get_or_load("k", loader)
    clock.now += 10
    cache.get_or_load("k", loader)

    assert len(calls) == 2


def test_invalidate():
    cache = TTLCache(ttl=10)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.invalidate()
    assert len(cache) == 0


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        TTLCache(ttl=0)


def test_catalog_is_built_once():
    builds = []

    def loader():
        builds.append(1)
        return build_catalog()

    catalog = SkillsCatalog(cache=TTLCache(ttl=60, clock=FakeClock()), loader=loader)
    catalog.all()
    catalog.search("python")
    catalog.categories()

    assert builds == [1]


def test_search_prefers_prefix_matches():
    catalog = SkillsCatalog(cache=TTLCache(ttl=60))

    names = [skill["name"] for skill in catalog.search("py")]

    assert names[:2] == ["Python", "PyTorch"]
    assert "NumPy" in names
    assert catalog.search("p") == []


def test_filter_by_category():
    catalog = SkillsCatalog(cache=TTLCache(ttl=60))

    design = catalog.all("design")

    assert {skill["name"] for skill in design} >= {"Figma", "UX Design"}
    assert all(skill["category"] == "Design" for skill in design)


def test_skills_endpoints(client):
    assert "Databases" in client.get("/api/skills/categories").json()["categories"]
    results = client.get("/api/skills/search", params={"q": "react"}).json()["skills"]
    assert [s["name"] for s in results] == ["React", "React Native"]
