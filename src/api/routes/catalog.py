"""Catalog routes: services, products and workshops.

All three share one record shape (photo, name, descriptions, price), so each
router comes from the same factory with its own schema and repository.
"""

from api.dependencies import get_product_repo, get_service_repo, get_workshop_repo
from api.routes.records import build_record_router
from domain.model.entities import PRODUCT_SCHEMA, SERVICE_SCHEMA, WORKSHOP_SCHEMA

services_router = build_record_router(SERVICE_SCHEMA, "/api/services", get_service_repo)
products_router = build_record_router(PRODUCT_SCHEMA, "/api/products", get_product_repo)
workshops_router = build_record_router(WORKSHOP_SCHEMA, "/api/workshops", get_workshop_repo)
