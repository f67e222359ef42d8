"""Domain error to HTTP response mapping.

Only the service's own exception types are mapped; anything else is a bug and
surfaces as a 500.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..services.catalog_service import InvalidTierError, ProductNotFoundError, TierNotFoundError
from ..storage.object_storage import StorageError
from ..store.base import DataStoreError, UniqueViolationError


def _format_error(detail: str, code: str):
    return {"detail": detail, "code": code}


def register_exception_handlers(app: FastAPI) -> None:
    async def not_found_handler(request: Request, exc: LookupError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_format_error(str(exc), "not_found"))

    app.add_exception_handler(ProductNotFoundError, not_found_handler)
    app.add_exception_handler(TierNotFoundError, not_found_handler)

    @app.exception_handler(InvalidTierError)
    async def invalid_tier_handler(request: Request, exc: InvalidTierError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_format_error(str(exc), "validation_error"))

    @app.exception_handler(UniqueViolationError)
    async def conflict_handler(request: Request, exc: UniqueViolationError):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=_format_error(exc.message, exc.code))

    @app.exception_handler(DataStoreError)
    async def store_handler(request: Request, exc: DataStoreError):
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=_format_error(exc.message, exc.code or "data_store_error"),
        )

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError):
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=_format_error(str(exc), "storage_error"))
