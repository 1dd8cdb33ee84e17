"""Error translation for the HTTP layer.

Every failure leaves the API as {"message": ...}:
    - domain errors → 400 / 404 / 409 via translate_domain_errors()
    - HTTPException → its status code and detail
    - RequestValidationError → 400 with the field messages
    - anything else → 500 without internal details
"""

import logging
from contextlib import contextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from domain.model.errors import DuplicateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@contextmanager
def translate_domain_errors(failure_message: str):
    """Map domain errors raised inside the block to HTTPException.

    failure_message is what the client sees for unexpected failures.
    """
    try:
        yield
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except DuplicateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.error(failure_message, exc_info=True, extra={"error": str(e)[:200]})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_message) from e


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = [
            f"{'.'.join(str(loc) for loc in e['loc'] if loc != 'body')}: {e['msg']}"
            for e in exc.errors()
        ]
        logger.warning(f"Validation error on {request.url.path}", extra={"errors": messages})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": ", ".join(messages) or "Invalid request"},
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )
