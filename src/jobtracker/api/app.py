from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from jobtracker.api.routes import admin, applications, auth, postings, profile, recruiters
from jobtracker.config import get_settings
from jobtracker.db.init import ensure_data_directories, init_database
from jobtracker.errors import JobTrackerError
from jobtracker.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    ensure_data_directories()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.exception_handler(JobTrackerError)
    def _handle_service_error(_request: Request, exc: JobTrackerError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    def _handle_invalid_request(_request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(status_code=400, content=jsonable_encoder({"detail": "Validation failed", "errors": errors}))

    @app.exception_handler(Exception)
    def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred"})

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(auth.router)
    app.include_router(auth.callback_router)
    app.include_router(profile.router)
    app.include_router(applications.router)
    app.include_router(postings.router)
    app.include_router(recruiters.router)
    app.include_router(admin.router)

    app.mount(
        settings.uploads_url_prefix,
        StaticFiles(directory=str(settings.upload_dir)),
        name="uploads",
    )
    return app
