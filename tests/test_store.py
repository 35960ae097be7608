import pytest
from beanie.odm.queries.update import UpdateResponse

from app.models.mongodb import QuotaDocument
from app.services.store import UNLIMITED, MongoStore, catalog_key


class _Document:
    def __init__(self, **data):
        self.data = data

    def model_dump(self, exclude=()):
        return {key: value for key, value in self.data.items() if key not in exclude}


class _UpdateQuery:
    """Stands in for the query returned by ``QuotaDocument.find_one``."""

    def __init__(self, result):
        self.result = result
        self.update_args = None

    async def update(self, *args, **kwargs):
        self.update_args = (args, kwargs)
        return self.result


@pytest.fixture
def quota_query(monkeypatch):
    captured = {}
    query = _UpdateQuery(_Document(id="x", user_id="u1", year=2026, month=3, workout_count=3, diet_count=0))

    def find_one(filters):
        captured["filters"] = filters
        return query

    monkeypatch.setattr(QuotaDocument, "find_one", find_one)
    return captured, query


@pytest.mark.asyncio
async def test_limited_increment_only_matches_counters_below_the_limit(quota_query):
    captured, query = quota_query

    record = await MongoStore().increment_quota("u1", 2026, 3, "workout", 5)

    assert captured["filters"] == {"user_id": "u1", "year": 2026, "month": 3, "workout_count": {"$lt": 5}}
    args, kwargs = query.update_args
    assert args == ({"$inc": {"workout_count": 1}},)
    assert kwargs["response_type"] == UpdateResponse.NEW_DOCUMENT
    assert record.workout_count == 3


@pytest.mark.asyncio
async def test_unlimited_increment_has_no_counter_filter(quota_query):
    captured, query = quota_query

    await MongoStore().increment_quota("u1", 2026, 3, "diet", UNLIMITED)

    assert captured["filters"] == {"user_id": "u1", "year": 2026, "month": 3}
    assert query.update_args[0] == ({"$inc": {"diet_count": 1}},)


@pytest.mark.asyncio
async def test_no_matching_document_means_limit_reached(quota_query):
    _, query = quota_query
    query.result = None

    assert await MongoStore().increment_quota("u1", 2026, 3, "workout", 5) is None


@pytest.mark.parametrize("name, key", [
    ("  Push Ups ", "push ups"),
    ("SENTADILLAS", "sentadillas"),
])
def test_catalog_key(name, key):
    assert catalog_key(name) == key
