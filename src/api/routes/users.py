"""User routes.

Standard CRUD under /api/users plus lookup by link handle:
- GET /api/users/link/{truvedaLink}
"""

import logging

from fastapi import Depends, HTTPException, status

from api.dependencies import get_user_repo
from api.errors import translate_domain_errors
from api.models import RecordResponse
from api.routes.records import build_record_router
from domain.model.entities import USER_SCHEMA
from services.entity_repository import EntityRepository

logger = logging.getLogger(__name__)

router = build_record_router(USER_SCHEMA, "/api/users", get_user_repo)


@router.get("/link/{truveda_link}", response_model=RecordResponse)
async def get_user_by_link(truveda_link: str, repo: EntityRepository = Depends(get_user_repo)):
    """Fetch a user by their public link handle (case-insensitive)."""
    with translate_domain_errors("Failed to fetch user by truvedaLink"):
        user = repo.find_by_field("truvedaLink", truveda_link)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_SCHEMA.not_found_message)

    logger.debug("User fetched by link", extra={"userId": user.id})
    return RecordResponse.of("User fetched successfully", user)
