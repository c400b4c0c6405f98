"""In-process gateway used for local development and tests."""

import copy
import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Union

from ..errors import GatewayError
from .base import EXAM_RESULTS, Gateway, Query, new_id

logger = logging.getLogger(__name__)


def _matches(record: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    for field, expected in filters.items():
        value = record.get(field)
        if isinstance(expected, dict):
            for op, operand in expected.items():
                if op == "$in":
                    if value not in operand:
                        return False
                elif op == "$ne":
                    if value == operand:
                        return False
                else:
                    raise GatewayError(f"Unsupported filter operator '{op}'")
        elif value != expected:
            return False
    return True


class MemoryGateway(Gateway):
    """Keeps every collection as a list of dicts. Seed data may be passed per collection."""

    def __init__(self, data: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self._collections: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for collection, records in (data or {}).items():
            for record in records:
                row = copy.deepcopy(record)
                row.setdefault("id", new_id(collection))
                self._collections[collection].append(row)

    async def fetch(self, collection: str, query: Optional[Query] = None) -> List[Dict[str, Any]]:
        query = query or Query()
        rows = [r for r in self._collections[collection] if _matches(r, query.filters)]

        # Stable sorts applied from the last key to the first
        for field, direction in reversed(query.order_by):
            rows.sort(
                key=lambda r: (r.get(field) is None, r.get(field) if r.get(field) is not None else 0),
                reverse=direction < 0
            )

        if query.limit is not None:
            rows = rows[:query.limit]

        results = []
        for row in rows:
            if query.select:
                out = {k: copy.deepcopy(row[k]) for k in query.select if k in row}
            else:
                out = copy.deepcopy(row)
            for name, rel in query.embed.items():
                related = [
                    copy.deepcopy(r) for r in self._collections[rel.collection]
                    if r.get(rel.foreign_field) == row.get(rel.local_field)
                ]
                out[name] = related if rel.many else (related[0] if related else None)
            results.append(out)
        return results

    async def insert(
        self,
        collection: str,
        records: Union[Dict[str, Any], List[Dict[str, Any]]]
    ) -> List[Dict[str, Any]]:
        if isinstance(records, dict):
            records = [records]
        stored = []
        for record in records:
            row = copy.deepcopy(record)
            if row.get("id") is None:
                row["id"] = new_id(collection)
            stored.append(row)
        self._collections[collection].extend(stored)
        return copy.deepcopy(stored)

    async def update(self, collection: str, record_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        for row in self._collections[collection]:
            if row.get("id") == record_id:
                row.update(copy.deepcopy(partial))
                return copy.deepcopy(row)
        raise GatewayError(f"No record '{record_id}' in {collection}", collection)

    async def delete(
        self,
        collection: str,
        record_id: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None
    ) -> int:
        if record_id is None and not filters:
            raise GatewayError("Refusing to delete without an id or a filter", collection)
        criteria = {"id": record_id} if record_id is not None else filters
        before = self._collections[collection]
        kept = [r for r in before if not _matches(r, criteria)]
        self._collections[collection] = kept
        return len(before) - len(kept)

    async def replace_set(
        self,
        collection: str,
        parent_field: str,
        parent_id: str,
        items: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        fresh = []
        for item in items:
            row = copy.deepcopy(item)
            row[parent_field] = parent_id
            row["id"] = new_id(collection)
            fresh.append(row)

        # Swap in one step so readers never see a half-written set
        others = [r for r in self._collections[collection] if r.get(parent_field) != parent_id]
        self._collections[collection] = others + fresh
        logger.debug(f"Replaced {collection} for {parent_field}={parent_id}: {len(fresh)} rows")
        return copy.deepcopy(fresh)

    async def _rpc_get_exam_class_statistics(self, exam_id: str) -> Dict[str, Any]:
        scores = [
            r["score"] for r in self._collections[EXAM_RESULTS]
            if r.get("exam_id") == exam_id and r.get("score") is not None
        ]
        return self._class_statistics(scores)
