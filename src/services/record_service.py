"""Record service: uploads + repository + file cleanup for every entity.

API-side flow:
    create: store uploads → uniqueness pre-check → repository.create
    update: store uploads → load current → pre-check → repository.update → drop replaced files
    delete: repository.delete → drop the record's files

Files written for a request are deleted again if anything after the write
fails. Replaced files are deleted only after the update has committed.
Placeholder references are never deleted.
"""

import logging

from domain.model.errors import DuplicateError, NotFoundError
from domain.model.record import Record, Upload
from domain.model.schema import FieldKind, FieldSpec
from port.upload_storage import UploadStorage
from services.entity_repository import EntityRepository

logger = logging.getLogger(__name__)


# ── file helpers ─────────────────────────────────────────────


def _references(spec: FieldSpec, value) -> list[str]:
    if not value:
        return []
    refs = value if isinstance(value, (list, tuple)) else [value]
    return [ref for ref in refs if ref and not (isinstance(spec.default, str) and ref == spec.default)]


def _release(storage: UploadStorage, references: list[str]) -> None:
    for reference in references:
        storage.delete(reference)


def _store_uploads(
    storage: UploadStorage,
    repo: EntityRepository,
    uploads: dict[str, list[Upload]] | None,
) -> dict[str, list[str]]:
    """Write every upload; on a failed write, remove the ones already written."""
    written: dict[str, list[str]] = {}
    try:
        for spec in repo.schema.image_fields:
            for upload in (uploads or {}).get(spec.name) or []:
                written.setdefault(spec.name, []).append(storage.save(upload))
    except Exception:
        _release(storage, [ref for refs in written.values() for ref in refs])
        raise
    return written


def _with_images(repo: EntityRepository, payload: dict, written: dict[str, list[str]]) -> dict:
    """Drop client-supplied image references and insert the freshly stored ones."""
    image_names = {spec.name for spec in repo.schema.image_fields}
    result = {key: value for key, value in (payload or {}).items() if key not in image_names}
    for name, refs in written.items():
        spec = repo.schema.get_field(name)
        result[name] = refs if spec.kind == FieldKind.TEXT_LIST else refs[0]
    return result


def _check_unique(repo: EntityRepository, payload: dict, exclude_id: str | None = None) -> None:
    """Early exit on an obvious clash; the unique index still has the final word."""
    for name in repo.schema.unique_fields:
        value = (payload or {}).get(name)
        if value is None:
            continue
        existing = repo.find_by_field(name, value)
        if existing and existing.id != exclude_id:
            logger.info("Unique value already taken", extra={"entity": repo.schema.name, "field": name})
            raise DuplicateError([name], f"{name} already exists")


# ── operations ───────────────────────────────────────────────


def create_record(
    repo: EntityRepository,
    storage: UploadStorage,
    payload: dict,
    uploads: dict[str, list[Upload]] | None = None,
) -> Record:
    """Create a record, attaching uploaded images. Raises DomainError subclasses."""
    written = _store_uploads(storage, repo, uploads)
    try:
        _check_unique(repo, payload)
        return repo.create(_with_images(repo, payload, written))
    except Exception:
        _release(storage, [ref for refs in written.values() for ref in refs])
        raise


def update_record(
    repo: EntityRepository,
    storage: UploadStorage,
    record_id: str,
    payload: dict,
    uploads: dict[str, list[Upload]] | None = None,
) -> Record:
    """Partially update a record; new images replace the old ones after commit."""
    written = _store_uploads(storage, repo, uploads)
    try:
        current = repo.find_by_id(record_id)
        if current is None:
            raise NotFoundError(repo.schema.not_found_message)
        _check_unique(repo, payload, exclude_id=current.id)
        record = repo.update(record_id, _with_images(repo, payload, written))
    except Exception:
        _release(storage, [ref for refs in written.values() for ref in refs])
        raise

    for name, refs in written.items():
        spec = repo.schema.get_field(name)
        stale = [ref for ref in _references(spec, current.get(name)) if ref not in refs]
        _release(storage, stale)
        if stale:
            logger.info("Replaced images deleted", extra={"entity": repo.schema.name, "id": record.id, "count": len(stale)})
    return record


def delete_record(repo: EntityRepository, storage: UploadStorage, record_id: str) -> Record:
    """Delete a record and the uploaded images it referenced."""
    record = repo.delete(record_id)
    for spec in repo.schema.image_fields:
        _release(storage, _references(spec, record.get(spec.name)))
    return record
