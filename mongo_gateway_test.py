"""MongoGateway against an in-memory MongoDB (mongomock-motor)."""

import pytest
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import PyMongoError

from conftest import PROFESSOR, run, seed_data
from examdesk.errors import GatewayError
from examdesk.gateway import (
    ASCENDING,
    COURSES,
    EXAM_QUESTIONS,
    EXAMS,
    STUDENT_COURSES,
    STUDENTS,
    MongoGateway,
    Query,
    Relation,
)
from examdesk.gateway.mongo import GENERATION_FIELD


def _seeded_gateway():
    db = AsyncMongoMockClient()["examdesk_test"]
    gateway = MongoGateway(db)
    for collection, records in seed_data().items():
        run(gateway.insert(collection, records))
    return gateway


@pytest.fixture
def mongo():
    return _seeded_gateway()


def test_fetch_filters_orders_and_strips_mongo_fields(mongo):
    rows = run(mongo.fetch(STUDENTS, Query(filters={"status": "active"}, order_by=[("full_name", ASCENDING)])))

    assert [r["id"] for r in rows] == ["stud_1", "stud_2", "stud_3"]
    assert all("_id" not in r for r in rows)


def test_fetch_select(mongo):
    rows = run(mongo.fetch(COURSES, Query(select=["id", "name"], order_by=[("name", ASCENDING)])))
    assert rows == [{"id": "course_1", "name": "Algorithms"}, {"id": "course_2", "name": "Databases"}]


def test_fetch_embeds_related_record(mongo):
    rows = run(mongo.fetch(STUDENT_COURSES, Query(
        filters={"course_id": "course_1", "is_active": True},
        embed={"student": Relation(collection=STUDENTS, local_field="student_id")}
    )))

    assert sorted(r["student"]["full_name"] for r in rows) == ["Alice Martin", "Bob Diallo"]
    assert all("_id" not in r["student"] for r in rows)


def test_insert_assigns_ids_and_update_returns_record(mongo):
    stored = run(mongo.insert(EXAMS, {"title": "Pop quiz", "status": "draft"}))[0]
    assert stored["id"].startswith("exam_")

    updated = run(mongo.update(EXAMS, stored["id"], {"status": "published"}))
    assert updated["status"] == "published"
    assert updated["title"] == "Pop quiz"
    assert "_id" not in updated


def test_update_missing_record(mongo):
    with pytest.raises(GatewayError):
        run(mongo.update(EXAMS, "exam_nope", {"title": "x"}))


def test_replace_set_swaps_children(mongo):
    rows = run(mongo.replace_set(EXAM_QUESTIONS, "exam_id", "exam_draft", [
        {"question_number": 1, "question_text": "Only one left", "question_type": "essay", "points": 20}
    ]))
    assert rows[0]["exam_id"] == "exam_draft"
    assert GENERATION_FIELD not in rows[0]

    stored = run(mongo.fetch(EXAM_QUESTIONS, Query(filters={"exam_id": "exam_draft"})))
    assert [q["question_text"] for q in stored] == ["Only one left"]
    assert GENERATION_FIELD not in stored[0]


def test_replace_set_with_no_items_clears(mongo):
    run(mongo.replace_set(EXAM_QUESTIONS, "exam_id", "exam_draft", []))
    assert run(mongo.fetch(EXAM_QUESTIONS, Query(filters={"exam_id": "exam_draft"}))) == []


def test_delete_requires_id_or_filter(mongo):
    with pytest.raises(GatewayError):
        run(mongo.delete(EXAMS))
    assert run(mongo.delete(EXAM_QUESTIONS, filters={"exam_id": "exam_draft"})) == 2


def test_class_statistics_rpc(mongo):
    stats = run(mongo.rpc("get_exam_class_statistics", {"exam_id": "exam_published"}))
    assert stats == {"average": 15.17, "highest": 18, "lowest": 12, "count": 3}


def test_unknown_rpc(mongo):
    with pytest.raises(GatewayError):
        run(mongo.rpc("drop_everything"))


def test_current_user(mongo):
    assert run(mongo.current_user("token_prof1")) == PROFESSOR
    assert run(mongo.current_user("token_expired")) is None
    assert run(mongo.current_user("token_unknown")) is None


class _InsertFailsHalfway:
    """Collection wrapper whose insert_many writes the first row, then fails."""

    def __init__(self, collection):
        self._collection = collection

    def __getattr__(self, name):
        return getattr(self._collection, name)

    async def insert_many(self, documents, **kwargs):
        await self._collection.insert_many(documents[:1], **kwargs)
        raise PyMongoError("connection reset during insert")


class _Database:
    """Database wrapper that breaks inserts into one collection."""

    def __init__(self, db, broken):
        self._db = db
        self._broken = broken

    def __getattr__(self, name):
        return getattr(self._db, name)

    def __getitem__(self, name):
        collection = self._db[name]
        return _InsertFailsHalfway(collection) if name == self._broken else collection


def test_replace_set_failure_keeps_old_children(mongo, monkeypatch):
    real_db = mongo.db
    before = run(mongo.fetch(EXAM_QUESTIONS, Query(filters={"exam_id": "exam_draft"})))
    monkeypatch.setattr(mongo, "db", _Database(real_db, EXAM_QUESTIONS))

    with pytest.raises(GatewayError):
        run(mongo.replace_set(EXAM_QUESTIONS, "exam_id", "exam_draft", [
            {"question_number": 1, "question_text": "New one", "question_type": "essay", "points": 10},
            {"question_number": 2, "question_text": "New two", "question_type": "essay", "points": 10},
        ]))

    monkeypatch.setattr(mongo, "db", real_db)
    after = run(mongo.fetch(EXAM_QUESTIONS, Query(filters={"exam_id": "exam_draft"})))
    assert sorted(after, key=lambda q: q["question_number"]) == sorted(before, key=lambda q: q["question_number"])
    leftovers = run(real_db[EXAM_QUESTIONS].count_documents({GENERATION_FIELD: {"$exists": True}}))
    assert leftovers == 0


def test_rpc_with_bad_arguments(mongo):
    with pytest.raises(GatewayError):
        run(mongo.rpc("get_exam_class_statistics", {"exam": "exam_published"}))
