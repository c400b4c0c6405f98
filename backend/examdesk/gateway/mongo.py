"""MongoDB gateway built on motor."""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from ..errors import GatewayError
from .base import (
    EXAM_QUESTIONS,
    EXAM_RESULTS,
    EXAMS,
    PROFESSOR_COURSES,
    PROFESSORS,
    STUDENT_COURSES,
    STUDENT_EXAMS,
    STUDENTS,
    USER_SESSIONS,
    USERS,
    Gateway,
    Query,
    new_id,
)

logger = logging.getLogger(__name__)

# Marks which replace_set call wrote a child row
GENERATION_FIELD = "_generation"


def _clean(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc.pop("_id", None)
    doc.pop(GENERATION_FIELD, None)
    return doc


@asynccontextmanager
async def _translate_errors(collection: str):
    try:
        yield
    except PyMongoError as e:
        logger.error(f"MongoDB error on {collection}: {e}")
        raise GatewayError(str(e), collection) from e


class MongoGateway(Gateway):
    """Gateway over a motor database. Call connect() before use, or pass a ready database."""

    def __init__(self, db: Optional[AsyncIOMotorDatabase] = None, use_transactions: bool = False):
        self.db = db
        self.use_transactions = use_transactions

    async def connect(self, url: str, database_name: str) -> None:
        client = AsyncIOMotorClient(
            url,
            maxPoolSize=50,
            serverSelectionTimeoutMS=5000
        )
        # Fail fast if the server is unreachable
        await client.server_info()
        self.db = client[database_name]
        logger.info(f"Connected to MongoDB: {database_name}")

    def close(self) -> None:
        if self.db is not None:
            self.db.client.close()

    async def create_indexes(self) -> None:
        """Create database indexes for performance."""
        try:
            await self.db[EXAMS].create_index("id", unique=True)
            await self.db[EXAMS].create_index("course_id")
            await self.db[EXAMS].create_index("professor_id")

            # Children are replaced by writing a new generation before dropping the
            # old one, so (exam_id, question_number) cannot carry a unique index
            await self.db[EXAM_QUESTIONS].create_index([("exam_id", 1), ("question_number", 1)])
            await self.db[STUDENT_EXAMS].create_index([("exam_id", 1), ("student_id", 1)])
            await self.db[EXAM_RESULTS].create_index("exam_id")

            await self.db[STUDENT_COURSES].create_index([("course_id", 1), ("is_active", 1)])
            await self.db[PROFESSOR_COURSES].create_index("professor_id")
            await self.db[STUDENTS].create_index("status")
            await self.db[PROFESSORS].create_index("user_id")
            await self.db[USERS].create_index("user_id", unique=True)
            await self.db[USER_SESSIONS].create_index("session_token", unique=True)
        except PyMongoError as e:
            logger.warning(f"Index creation warning: {e}")

    async def fetch(self, collection: str, query: Optional[Query] = None) -> List[Dict[str, Any]]:
        query = query or Query()
        col = self.db[collection]

        async with _translate_errors(collection):
            if query.embed:
                docs = await col.aggregate(self._pipeline(query)).to_list(None)
            else:
                projection = {"_id": 0}
                if query.select:
                    projection.update({field: 1 for field in query.select})
                cursor = col.find(query.filters, projection)
                if query.order_by:
                    cursor = cursor.sort(list(query.order_by))
                if query.limit is not None:
                    cursor = cursor.limit(query.limit)
                docs = await cursor.to_list(None)

        for doc in docs:
            _clean(doc)
            for name, rel in query.embed.items():
                if rel.many:
                    doc[name] = [_clean(d) for d in doc.get(name, [])]
                else:
                    doc[name] = _clean(doc[name]) if doc.get(name) else None
        return docs

    @staticmethod
    def _pipeline(query: Query) -> List[Dict[str, Any]]:
        pipeline: List[Dict[str, Any]] = []
        if query.filters:
            pipeline.append({"$match": query.filters})
        if query.order_by:
            pipeline.append({"$sort": dict(query.order_by)})
        if query.limit is not None:
            pipeline.append({"$limit": query.limit})
        for name, rel in query.embed.items():
            pipeline.append({
                "$lookup": {
                    "from": rel.collection,
                    "localField": rel.local_field,
                    "foreignField": rel.foreign_field,
                    "as": name
                }
            })
            if not rel.many:
                pipeline.append({"$unwind": {"path": f"${name}", "preserveNullAndEmptyArrays": True}})
        if query.select:
            fields = list(query.select) + list(query.embed)
            pipeline.append({"$project": {field: 1 for field in fields}})
        return pipeline

    async def insert(
        self,
        collection: str,
        records: Union[Dict[str, Any], List[Dict[str, Any]]]
    ) -> List[Dict[str, Any]]:
        if isinstance(records, dict):
            records = [records]
        stored = []
        for record in records:
            row = dict(record)
            if row.get("id") is None:
                row["id"] = new_id(collection)
            stored.append(row)
        if not stored:
            return []

        async with _translate_errors(collection):
            # insert_many adds _id to the dicts it is given
            await self.db[collection].insert_many([dict(r) for r in stored])
        return stored

    async def update(self, collection: str, record_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        async with _translate_errors(collection):
            doc = await self.db[collection].find_one_and_update(
                {"id": record_id},
                {"$set": partial},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER
            )
        if doc is None:
            raise GatewayError(f"No record '{record_id}' in {collection}", collection)
        return doc

    async def delete(
        self,
        collection: str,
        record_id: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None
    ) -> int:
        if record_id is None and not filters:
            raise GatewayError("Refusing to delete without an id or a filter", collection)
        async with _translate_errors(collection):
            if record_id is not None:
                result = await self.db[collection].delete_one({"id": record_id})
            else:
                result = await self.db[collection].delete_many(filters)
        return result.deleted_count

    async def replace_set(
        self,
        collection: str,
        parent_field: str,
        parent_id: str,
        items: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        generation = uuid.uuid4().hex
        rows = []
        for item in items:
            row = dict(item)
            row[parent_field] = parent_id
            row["id"] = new_id(collection)
            row[GENERATION_FIELD] = generation
            rows.append(row)

        col = self.db[collection]
        async with _translate_errors(collection):
            if self.use_transactions:
                async with await self.db.client.start_session() as session:
                    async with session.start_transaction():
                        await col.delete_many({parent_field: parent_id}, session=session)
                        if rows:
                            await col.insert_many([dict(r) for r in rows], session=session)
            else:
                try:
                    if rows:
                        await col.insert_many([dict(r) for r in rows])
                except PyMongoError:
                    # Drop whatever part of the new generation made it in; the old set is untouched
                    await col.delete_many({parent_field: parent_id, GENERATION_FIELD: generation})
                    raise
                await col.delete_many({parent_field: parent_id, GENERATION_FIELD: {"$ne": generation}})

        logger.debug(f"Replaced {collection} for {parent_field}={parent_id}: {len(rows)} rows")
        return [_clean(r) for r in rows]

    async def _rpc_get_exam_class_statistics(self, exam_id: str) -> Dict[str, Any]:
        pipeline = [
            {"$match": {"exam_id": exam_id, "score": {"$ne": None}}},
            {"$group": {
                "_id": None,
                "average": {"$avg": "$score"},
                "highest": {"$max": "$score"},
                "lowest": {"$min": "$score"},
                "count": {"$sum": 1}
            }}
        ]
        async with _translate_errors(EXAM_RESULTS):
            docs = await self.db[EXAM_RESULTS].aggregate(pipeline).to_list(1)
        if not docs:
            return self._class_statistics([])
        stats = docs[0]
        return {
            "average": round(stats["average"], 2),
            "highest": stats["highest"],
            "lowest": stats["lowest"],
            "count": stats["count"]
        }
