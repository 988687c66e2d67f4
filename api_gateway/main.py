# api_gateway/main.py
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from shared.config import Settings, load_settings
from shared.database import init_db, make_engine, make_session_local
from shared.envelope import GENERIC_ERROR, fail
from shared.errors import DirectoryError

from member_service.pipeline import ProfilePipeline
from member_service.uploader import AttachmentUploader
from member_service.routes import build_router as build_member_router
from college_service.routes import build_router as build_college_router
from achievement_service.routes import build_router as build_achievement_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("api-gateway")

SERVICES = ("members", "colleges", "achievements")


# -------------------------
# Error envelope
# -------------------------

async def directory_error_handler(request: Request, exc: DirectoryError):
    if exc.status_code >= 500:
        cause = getattr(exc, "cause", None)
        logger.error("%s %s failed: %s (cause: %r)", request.method, request.url.path, exc.message, cause)
        return JSONResponse(status_code=exc.status_code, content=fail(GENERIC_ERROR))
    return JSONResponse(status_code=exc.status_code, content=fail(exc.message))


async def http_error_handler(request: Request, exc: HTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else GENERIC_ERROR
    return JSONResponse(status_code=exc.status_code, content=fail(detail), headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        err = errors[0]
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        message = f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=fail(message))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=fail(GENERIC_ERROR))


# -------------------------
# App factory
# -------------------------

def _build_blob_store(settings: Settings):
    from shared.blob_store import S3BlobStore

    return S3BlobStore(bucket=settings.bucket_name, region=settings.region)


def create_app(
    settings: Optional[Settings] = None,
    *,
    blob_store: Any = None,
    SessionLocal: Any = None,
) -> FastAPI:
    settings = settings or load_settings()

    if SessionLocal is None:
        engine = make_engine(settings.database_url)
        init_db(engine)
        SessionLocal = make_session_local(engine)

    uploader = AttachmentUploader(
        blob_store if blob_store is not None else _build_blob_store(settings),
        max_workers=settings.upload_max_workers,
    )
    pipeline = ProfilePipeline(uploader, max_certificates=settings.max_certificates)

    app = FastAPI(title="Member Directory", version="1.0.0")

    origins = settings.cors_origins
    allow_credentials = True
    if origins == ["*"]:
        # Browsers reject "*" with credentials
        allow_credentials = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DirectoryError, directory_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(build_member_router(SessionLocal, pipeline))
    app.include_router(build_college_router(SessionLocal))
    app.include_router(build_achievement_router(SessionLocal, uploader))

    @app.get("/health", operation_id="health_check", tags=["Health"])
    async def health_check():
        return {"status": "healthy", "service": "member-directory"}

    @app.get("/", operation_id="root", tags=["Root"])
    async def root():
        return {
            "service": "Member Directory",
            "version": "1.0.0",
            "available_services": list(SERVICES),
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = load_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
