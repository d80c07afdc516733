# backend/app/db/store.py

"""
Document store used by the services.

Every collection carries a ``deleted`` flag. Reads go through the *live*
view by default, so soft-deleted rows never reach a service unless it asks
for them with ``include_deleted=True``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from postgrest.exceptions import APIError
from supabase import Client

from app.core.errors import DuplicateKeyError, StoreError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


@dataclass(frozen=True)
class In:
    values: Sequence[Any]


@dataclass(frozen=True)
class Not:
    value: Any


@dataclass(frozen=True)
class Between:
    """Inclusive on both ends."""
    low: Any
    high: Any


@dataclass(frozen=True)
class Contains:
    """Array column holds ``value``."""
    value: Any


Filters = Dict[str, Any]


def live(filters: Optional[Filters], include_deleted: bool = False) -> Filters:
    scoped = dict(filters or {})
    if not include_deleted:
        scoped.setdefault("deleted", False)
    return scoped


class DocumentStore:
    """Interface the services depend on."""

    def find_one(self, collection: str, filters: Filters, include_deleted: bool = False) -> Optional[Dict[str, Any]]:
        rows = self.find(collection, filters, include_deleted=include_deleted, limit=1)
        return rows[0] if rows else None

    def find(
        self,
        collection: str,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        include_deleted: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def count(self, collection: str, filters: Optional[Filters] = None, include_deleted: bool = False) -> int:
        raise NotImplementedError

    def insert(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def update(self, collection: str, filters: Filters, patch: Dict[str, Any]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def activate_exclusive(self, collection: str, doc_id: str) -> None:
        """Atomically set ``is_active`` on ``doc_id`` and clear it everywhere else."""
        raise NotImplementedError

    def supersede_and_insert(self, collection: str, superseded_ids: List[str], doc: Dict[str, Any]) -> Dict[str, Any]:
        """Atomically soft-delete ``superseded_ids`` and insert ``doc``."""
        raise NotImplementedError


class SupabaseStore(DocumentStore):

    def __init__(self, client: Client):
        self.client = client

    def _apply(self, query, filters: Filters):
        for column, value in filters.items():
            if isinstance(value, In):
                query = query.in_(column, list(value.values))
            elif isinstance(value, Not):
                query = query.neq(column, value.value)
            elif isinstance(value, Between):
                query = query.gte(column, value.low).lte(column, value.high)
            elif isinstance(value, Contains):
                query = query.contains(column, [value.value])
            elif value is None:
                query = query.is_(column, "null")
            else:
                query = query.eq(column, value)
        return query

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                logger.warning(f"Unique index rejected {action}: {e.message}")
                raise DuplicateKeyError(e.message)
            logger.error(f"Supabase API error during {action}: {e.message}")
            raise StoreError(f"Store failure during {action}")

    def find(self, collection, filters=None, order_by=None, descending=False, include_deleted=False, limit=None):
        query = self._apply(self.client.table(collection).select("*"), live(filters, include_deleted))
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        return self._execute(query, f"find on {collection}").data or []

    def count(self, collection, filters=None, include_deleted=False):
        query = self._apply(
            self.client.table(collection).select("id", count="exact"),
            live(filters, include_deleted),
        )
        return self._execute(query, f"count on {collection}").count or 0

    def insert(self, collection, doc):
        response = self._execute(self.client.table(collection).insert(doc), f"insert into {collection}")
        if not response.data:
            raise StoreError(f"Insert into {collection} returned no row")
        return response.data[0]

    def update(self, collection, filters, patch):
        query = self._apply(self.client.table(collection).update(patch), filters)
        return self._execute(query, f"update on {collection}").data or []

    def activate_exclusive(self, collection, doc_id):
        self._execute(
            self.client.rpc("activate_exclusive", {"target_table": collection, "target_id": doc_id}),
            f"activate_exclusive on {collection}",
        )

    def supersede_and_insert(self, collection, superseded_ids, doc):
        response = self._execute(
            self.client.rpc(
                "supersede_and_insert",
                {"target_table": collection, "superseded_ids": superseded_ids, "new_row": doc},
            ),
            f"supersede_and_insert on {collection}",
        )
        if not response.data:
            raise StoreError(f"supersede_and_insert on {collection} returned no row")
        return response.data
