from fastapi import HTTPException

from adapter.filesystem.upload_storage import LocalUploadStorage
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.document_store import MongoDocumentStore
from domain.model.entities import (
    ABOUT_SCHEMA,
    PRODUCT_SCHEMA,
    SERVICE_SCHEMA,
    USER_SCHEMA,
    WORKSHOP_SCHEMA,
)
from domain.model.schema import EntitySchema
from port.upload_storage import UploadStorage
from services.entity_repository import EntityRepository


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def _repository(schema: EntitySchema) -> EntityRepository:
    return EntityRepository(schema, MongoDocumentStore(_get_db(), schema.collection))


def get_user_repo() -> EntityRepository:
    return _repository(USER_SCHEMA)


def get_service_repo() -> EntityRepository:
    return _repository(SERVICE_SCHEMA)


def get_product_repo() -> EntityRepository:
    return _repository(PRODUCT_SCHEMA)


def get_workshop_repo() -> EntityRepository:
    return _repository(WORKSHOP_SCHEMA)


def get_about_repo() -> EntityRepository:
    return _repository(ABOUT_SCHEMA)


def get_upload_storage() -> UploadStorage:
    return LocalUploadStorage()
