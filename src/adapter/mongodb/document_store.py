"""MongoDB implementation of DocumentStore."""

import re
from logging import getLogger
from typing import Sequence

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from domain.model.errors import DuplicateError, StoreError

logger = getLogger(__name__)


def _duplicate_fields(error: DuplicateKeyError) -> list[str]:
    """Pull the offending field names out of an E11000 error."""
    details = error.details or {}
    fields = list(details.get('keyValue') or details.get('keyPattern') or {})
    if fields:
        return fields
    # Older servers only report the index name, e.g. "index: unique_email dup key"
    match = re.search(r'index: (?:unique_)?(\w+?)(?:_1)? dup key', str(error))
    return [match.group(1)] if match else []


class MongoDocumentStore:
    def __init__(self, db: Database, collection_name: str):
        self.collection = db[collection_name]

    # ── indexes ──────────────────────────────────────────────

    def ensure_indexes(self, unique_fields: Sequence[str]) -> bool:
        """Create unique indexes plus the createdAt sort index."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            for name in unique_fields:
                create_index_safe(self.collection, [(name, 1)], f'unique_{name}', unique=True)
            create_index_safe(self.collection, [('createdAt', -1)], 'idx_created_at_desc')
            return True
        except Exception as e:
            logger.error("Failed to create indexes", extra={"collection": self.collection.name, "error": str(e)})
            return False

    # ── write operations ─────────────────────────────────────

    def insert_one(self, doc: dict) -> ObjectId:
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            fields = _duplicate_fields(e)
            logger.warning("Insert rejected: duplicate key", extra={"collection": self.collection.name, "fields": fields})
            raise DuplicateError(fields) from e
        except PyMongoError as e:
            logger.error("Failed to insert document", extra={"collection": self.collection.name, "error": str(e)})
            raise StoreError("Failed to insert document") from e
        return result.inserted_id

    def find_one_and_update(self, doc_id: ObjectId, changes: dict) -> dict | None:
        try:
            return self.collection.find_one_and_update(
                {'_id': doc_id},
                {'$set': changes},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            fields = _duplicate_fields(e)
            logger.warning("Update rejected: duplicate key", extra={"collection": self.collection.name, "fields": fields})
            raise DuplicateError(fields) from e
        except PyMongoError as e:
            logger.error("Failed to update document", extra={"collection": self.collection.name, "id": str(doc_id), "error": str(e)})
            raise StoreError("Failed to update document") from e

    def find_one_and_delete(self, doc_id: ObjectId) -> dict | None:
        try:
            return self.collection.find_one_and_delete({'_id': doc_id})
        except PyMongoError as e:
            logger.error("Failed to delete document", extra={"collection": self.collection.name, "id": str(doc_id), "error": str(e)})
            raise StoreError("Failed to delete document") from e

    # ── read operations ──────────────────────────────────────

    def find_one(self, criteria: dict) -> dict | None:
        try:
            return self.collection.find_one(criteria)
        except PyMongoError as e:
            logger.error("Failed to find document", extra={"collection": self.collection.name, "error": str(e)})
            raise StoreError("Failed to find document") from e

    def find_page(
        self,
        search: str | None,
        search_fields: Sequence[str],
        skip: int,
        limit: int,
    ) -> tuple[list[dict], int]:
        query: dict = {}
        if search and search_fields:
            pattern = {'$regex': re.escape(search), '$options': 'i'}
            query['$or'] = [{name: pattern} for name in search_fields]

        try:
            total = self.collection.count_documents(query)
            docs = list(
                self.collection.find(query)
                .sort('createdAt', DESCENDING)
                .skip(skip)
                .limit(limit)
            )
        except PyMongoError as e:
            logger.error("Failed to list documents", extra={"collection": self.collection.name, "error": str(e)})
            raise StoreError("Failed to list documents") from e

        logger.debug("Listed documents", extra={"collection": self.collection.name, "count": len(docs), "total": total})
        return docs, total

    def count(self) -> int:
        try:
            return self.collection.count_documents({})
        except PyMongoError as e:
            logger.error("Failed to count documents", extra={"collection": self.collection.name, "error": str(e)})
            raise StoreError("Failed to count documents") from e
