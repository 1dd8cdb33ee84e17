"""In-memory implementation of DocumentStore for testing."""

import copy
from typing import Sequence

from bson import ObjectId

from domain.model.errors import DuplicateError


class FakeDocumentStore:
    def __init__(self, unique_fields: Sequence[str] = ()):
        self.store: dict[ObjectId, dict] = {}
        self.unique_fields: tuple[str, ...] = tuple(unique_fields)

    def ensure_indexes(self, unique_fields: Sequence[str]) -> bool:
        self.unique_fields = tuple(unique_fields)
        return True

    # ── helpers ──────────────────────────────────────────────

    def _check_unique(self, doc: dict, exclude: ObjectId | None = None) -> None:
        clashes = [
            name for name in self.unique_fields
            if name in doc and any(
                other_id != exclude and other.get(name) == doc[name]
                for other_id, other in self.store.items()
            )
        ]
        if clashes:
            raise DuplicateError(clashes)

    @staticmethod
    def _apply(doc: dict, changes: dict) -> dict:
        updated = copy.deepcopy(doc)
        for path, value in changes.items():
            target = updated
            *parents, leaf = path.split('.')
            for key in parents:
                target = target.setdefault(key, {})
            target[leaf] = copy.deepcopy(value)
        return updated

    # ── write operations ─────────────────────────────────────

    def insert_one(self, doc: dict) -> ObjectId:
        self._check_unique(doc)
        doc_id = ObjectId()
        self.store[doc_id] = {**copy.deepcopy(doc), '_id': doc_id}
        return doc_id

    def find_one_and_update(self, doc_id: ObjectId, changes: dict) -> dict | None:
        doc = self.store.get(doc_id)
        if doc is None:
            return None

        updated = self._apply(doc, changes)
        self._check_unique(updated, exclude=doc_id)
        self.store[doc_id] = updated
        return copy.deepcopy(updated)

    def find_one_and_delete(self, doc_id: ObjectId) -> dict | None:
        return self.store.pop(doc_id, None)

    # ── read operations ──────────────────────────────────────

    def find_one(self, criteria: dict) -> dict | None:
        for doc in self.store.values():
            if all(doc.get(key) == value for key, value in criteria.items()):
                return copy.deepcopy(doc)
        return None

    def find_page(
        self,
        search: str | None,
        search_fields: Sequence[str],
        skip: int,
        limit: int,
    ) -> tuple[list[dict], int]:
        # dicts keep insertion order, so reversing breaks createdAt ties newest-first
        results = list(reversed(self.store.values()))

        if search and search_fields:
            needle = search.lower()
            results = [
                doc for doc in results
                if any(needle in str(doc.get(name, '')).lower() for name in search_fields)
            ]

        results.sort(key=lambda doc: doc['createdAt'], reverse=True)
        total = len(results)
        return [copy.deepcopy(doc) for doc in results[skip:skip + limit]], total

    def count(self) -> int:
        return len(self.store)
