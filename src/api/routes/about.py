"""About routes: description plus up to 4 images sent as `aboutImages`."""

from api.dependencies import get_about_repo
from api.routes.records import build_record_router
from domain.model.entities import ABOUT_SCHEMA

router = build_record_router(ABOUT_SCHEMA, "/api/about", get_about_repo)
