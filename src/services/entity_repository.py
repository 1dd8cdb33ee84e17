"""Generic entity repository: one class serving every entity schema.

Flow per operation:
    create: sanitize(full) → stamp createdAt == updatedAt → insert
    update: check id → sanitize(partial) → load current → stamp updatedAt → $set
    delete: check id → find-and-delete → return the removed record for file cleanup

The store handle is passed in, so the same class works against MongoDB and
the in-memory fake.
"""

import logging
from datetime import datetime, timedelta, timezone

from bson import ObjectId

from domain.model.errors import NotFoundError, ValidationError
from domain.model.record import Page, Record
from domain.model.schema import EntitySchema, FieldKind, clean_text, sanitize
from port.document_store import DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

_META_FIELDS = ('_id', 'createdAt', 'updatedAt')


def _parse_int(value, default: int) -> int:
    """Lenient query-string integer: unparsable or zero falls back to default."""
    if isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number or default


def _now() -> datetime:
    # MongoDB keeps millisecond precision; truncate so stored == returned
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class EntityRepository:
    def __init__(self, schema: EntitySchema, store: DocumentStore):
        self.schema = schema
        self.store = store

    def ensure_indexes(self) -> bool:
        return self.store.ensure_indexes(self.schema.unique_fields)

    # ── helpers ──────────────────────────────────────────────

    def _to_object_id(self, record_id) -> ObjectId:
        value = str(record_id).strip() if record_id is not None else ''
        if not value or not ObjectId.is_valid(value):
            raise ValidationError(self.schema.invalid_id_message)
        return ObjectId(value)

    def _to_domain(self, doc: dict) -> Record:
        """Convert a stored document to a Record, computing virtual fields."""
        fields = {key: value for key, value in doc.items() if key not in _META_FIELDS}
        return Record(
            id=str(doc['_id']),
            fields=fields,
            created_at=doc['createdAt'],
            updated_at=doc['updatedAt'],
            virtuals={name: compute(fields) for name, compute in self.schema.virtuals.items()},
        )

    def _flatten(self, changes: dict) -> dict:
        """Expand nested objects to dotted paths so $set leaves sibling keys alone."""
        flat = {}
        for name, value in changes.items():
            spec = self.schema.get_field(name)
            if spec.kind == FieldKind.OBJECT:
                for key, child_value in value.items():
                    flat[f"{name}.{key}"] = child_value
            else:
                flat[name] = value
        return flat

    @staticmethod
    def _next_stamp(previous: datetime | None) -> datetime:
        """Current time, pushed 1 ms past previous when the clock has not moved on."""
        now = _now()
        if previous is not None and now <= _as_utc(previous):
            return _as_utc(previous) + timedelta(milliseconds=1)
        return now

    # ── write operations ─────────────────────────────────────

    def create(self, payload: dict) -> Record:
        """Validate payload in full mode and insert it."""
        doc = sanitize(self.schema, payload)
        now = _now()
        doc['createdAt'] = now
        doc['updatedAt'] = now

        doc['_id'] = self.store.insert_one(doc)
        logger.info(f"{self.schema.label} created", extra={"entity": self.schema.name, "id": str(doc['_id'])})
        return self._to_domain(doc)

    def update(self, record_id, payload: dict) -> Record:
        """Apply a partial update; fields not in payload stay untouched."""
        object_id = self._to_object_id(record_id)
        changes = sanitize(self.schema, payload, partial=True)
        if not changes:
            raise ValidationError("At least one field must be provided to update")

        current = self.store.find_one({'_id': object_id})
        if current is None:
            raise NotFoundError(self.schema.not_found_message)

        changes = self._flatten(changes)
        changes['updatedAt'] = self._next_stamp(current.get('updatedAt'))

        doc = self.store.find_one_and_update(object_id, changes)
        if doc is None:
            raise NotFoundError(self.schema.not_found_message)

        logger.info(f"{self.schema.label} updated", extra={
            "entity": self.schema.name, "id": str(object_id), "fields": sorted(changes),
        })
        return self._to_domain(doc)

    def delete(self, record_id) -> Record:
        """Delete and return the removed record so callers can clean up its files."""
        object_id = self._to_object_id(record_id)
        doc = self.store.find_one_and_delete(object_id)
        if doc is None:
            raise NotFoundError(self.schema.not_found_message)

        logger.info(f"{self.schema.label} deleted", extra={"entity": self.schema.name, "id": str(object_id)})
        return self._to_domain(doc)

    # ── read operations ──────────────────────────────────────

    def find_by_id(self, record_id) -> Record | None:
        doc = self.store.find_one({'_id': self._to_object_id(record_id)})
        return self._to_domain(doc) if doc else None

    def find_by_field(self, name: str, value) -> Record | None:
        """Look up by a single field, normalizing value the way it is stored."""
        spec = self.schema.get_field(name)
        normalized = clean_text(value, trim=spec.trim, lowercase=spec.lowercase)
        if not normalized:
            return None
        doc = self.store.find_one({name: normalized})
        return self._to_domain(doc) if doc else None

    def list(self, page=DEFAULT_PAGE, limit=DEFAULT_LIMIT, search: str | None = None) -> Page:
        """Newest-first page of records, optionally filtered by a substring search."""
        page_number = max(_parse_int(page, DEFAULT_PAGE), 1)
        limit_number = min(max(_parse_int(limit, DEFAULT_LIMIT), 1), MAX_LIMIT)
        term = clean_text(search) or None

        docs, total = self.store.find_page(
            term,
            self.schema.search_fields,
            skip=(page_number - 1) * limit_number,
            limit=limit_number,
        )
        return Page(
            items=[self._to_domain(doc) for doc in docs],
            total=total,
            page=page_number,
            limit=limit_number,
        )

    def count(self) -> int:
        return self.store.count()
