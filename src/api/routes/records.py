"""Generic CRUD routes shared by every entity.

build_record_router() wires one EntitySchema to five endpoints:
- GET    {prefix}        list (?page, ?limit, ?search)
- GET    {prefix}/{id}   fetch one
- POST   {prefix}        create (multipart form with image files, or JSON)
- PUT    {prefix}/{id}   partial update
- DELETE {prefix}/{id}   delete, 204 with empty body

Flow:
    request → read payload + uploads → record_service → repository → response
"""

import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from starlette.datastructures import UploadFile

from api.dependencies import get_upload_storage
from api.errors import translate_domain_errors
from api.models import RecordListResponse, RecordResponse
from api.uploads import read_images
from domain.model.record import Upload
from domain.model.schema import EntitySchema
from port.upload_storage import UploadStorage
from services import record_service
from services.entity_repository import EntityRepository

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_payload(request: Request, schema: EntitySchema) -> tuple[dict, dict[str, list[Upload]]]:
    """Split the request body into plain fields and validated image uploads.

    Image files are keyed by the schema field they belong to.
    """
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be valid JSON")
        if not isinstance(body, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be a JSON object")
        return body, {}

    if not content_type.startswith(FORM_CONTENT_TYPES):
        return {}, {}

    form = await request.form()
    by_form_field = {spec.form_field: spec for spec in schema.image_fields}
    payload: dict = {}
    files: dict[str, list[UploadFile]] = {}

    for key, value in form.multi_items():
        if not isinstance(value, UploadFile):
            payload[key] = value
            continue
        if not value.filename:
            continue  # empty file input
        if key not in by_form_field:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unexpected file field: {key}")
        files.setdefault(key, []).append(value)

    uploads = {}
    for key, items in files.items():
        spec = by_form_field[key]
        uploads[spec.name] = await read_images(items, key, spec.max_uploads)
    return payload, uploads


def build_record_router(
    schema: EntitySchema,
    prefix: str,
    get_repo: Callable[[], EntityRepository],
) -> APIRouter:
    """Build the CRUD router for one entity."""
    router = APIRouter(prefix=prefix, tags=[schema.collection])
    label = schema.label
    single = schema.label.lower()
    plural = schema.plural_label.lower()

    @router.get("", response_model=RecordListResponse, name=f"list_{schema.collection}")
    async def list_records(
        page: str | None = None,
        limit: str | None = None,
        search: str | None = None,
        repo: EntityRepository = Depends(get_repo),
    ):
        with translate_domain_errors(f"Failed to fetch {plural}"):
            result = repo.list(page=page, limit=limit, search=search)

        logger.info(f"Listed {plural}", extra={"count": len(result.items), "total": result.total, "page": result.page})
        return RecordListResponse.of(f"{schema.plural_label} fetched successfully", result)

    @router.get("/{record_id}", response_model=RecordResponse, name=f"get_{schema.name}")
    async def get_record(record_id: str, repo: EntityRepository = Depends(get_repo)):
        with translate_domain_errors(f"Failed to fetch {single}"):
            record = repo.find_by_id(record_id)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=schema.not_found_message)
        return RecordResponse.of(f"{label} fetched successfully", record)

    @router.post("", response_model=RecordResponse, status_code=status.HTTP_201_CREATED, name=f"create_{schema.name}")
    async def create_record(
        request: Request,
        repo: EntityRepository = Depends(get_repo),
        storage: UploadStorage = Depends(get_upload_storage),
    ):
        payload, uploads = await read_payload(request, schema)
        with translate_domain_errors(f"Failed to create {single}"):
            record = record_service.create_record(repo, storage, payload, uploads)
        return RecordResponse.of(f"{label} created successfully", record)

    @router.put("/{record_id}", response_model=RecordResponse, name=f"update_{schema.name}")
    async def update_record(
        record_id: str,
        request: Request,
        repo: EntityRepository = Depends(get_repo),
        storage: UploadStorage = Depends(get_upload_storage),
    ):
        payload, uploads = await read_payload(request, schema)
        with translate_domain_errors(f"Failed to update {single}"):
            record = record_service.update_record(repo, storage, record_id, payload, uploads)
        return RecordResponse.of(f"{label} updated successfully", record)

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT, name=f"delete_{schema.name}")
    async def delete_record(
        record_id: str,
        repo: EntityRepository = Depends(get_repo),
        storage: UploadStorage = Depends(get_upload_storage),
    ):
        with translate_domain_errors(f"Failed to delete {single}"):
            record_service.delete_record(repo, storage, record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
