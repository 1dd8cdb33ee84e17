"""Port definition for DocumentStore.

One store handle per collection. Documents are plain dicts keyed by a
store-generated ObjectId under `_id`.
"""

from typing import Protocol, Sequence

from bson import ObjectId


class DocumentStore(Protocol):
    def insert_one(self, doc: dict) -> ObjectId:
        """Insert doc and return its new id. Raise DuplicateError on a unique key clash."""
        ...

    def find_one(self, criteria: dict) -> dict | None:
        """Return the first document whose fields equal every criteria value."""
        ...

    def find_page(
        self,
        search: str | None,
        search_fields: Sequence[str],
        skip: int,
        limit: int,
    ) -> tuple[list[dict], int]:
        """Return (documents, total) newest first.

        When search is given, only documents where any search field contains
        it (case-insensitive) are counted and returned.
        """
        ...

    def count(self) -> int: ...

    def find_one_and_update(self, doc_id: ObjectId, changes: dict) -> dict | None:
        """Set changes (dotted paths allowed) and return the updated document, or None if missing."""
        ...

    def find_one_and_delete(self, doc_id: ObjectId) -> dict | None:
        """Delete and return the document, or None if missing."""
        ...

    def ensure_indexes(self, unique_fields: Sequence[str]) -> bool: ...
