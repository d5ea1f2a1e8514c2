"""
Identity verification API - application entry point.

Builds the FastAPI app: CORS, unified error handlers, the database, the face
detection model and the per-user capture sessions.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .api import auth, capture, routes, users
from .capture.face_detection import ModelNotInitializedError, detector
from .capture.session import CaptureSession, CaptureSessionStore, FrameAnalyzer
from .core.config import Settings, get_settings
from .core.exceptions import AppException
from .core.logging import log_error, setup_logging
from .db.database import SessionLocal, init_db
from .services.users import ensure_admin

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, analyzer: Optional[FrameAnalyzer] = None) -> FastAPI:
    """Create the application.

    Args:
        settings: Settings to use instead of the environment.
        analyzer: Face analyzer for capture sessions; defaults to the global
            face_recognition detector.
    """
    settings = settings or get_settings()
    frame_analyzer = analyzer or detector

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(level="DEBUG" if settings.debug else settings.log_level)
        logger.info(f"Starting identity verification API v{__version__}")
        if settings.uses_default_jwt_secret:
            logger.warning("JWT_SECRET is not set; tokens are signed with the default secret")

        init_db(settings.database_url)

        if analyzer is None and settings.load_face_model:
            try:
                detector.initialize()
            except ModelNotInitializedError as e:
                # Capture guidance degrades to "no face" until the model loads
                log_error(logger, e, "face model")

        if settings.admin_username and settings.admin_password:
            db = SessionLocal()
            try:
                ensure_admin(db, settings.admin_username, settings.admin_password)
            finally:
                db.close()

        yield
        logger.info("Shutting down")

    app = FastAPI(title="Identity Verification API", version=__version__, lifespan=lifespan)

    app.state.capture_store = CaptureSessionStore(
        lambda: CaptureSession(frame_analyzer, lighting_interval=settings.lighting_interval_seconds),
        max_idle=settings.capture_session_ttl_seconds,
    )
    app.dependency_overrides[get_settings] = lambda: settings

    # Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        logger.warning(f"AppException: {exc.code} - {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "code": "VALIDATION_ERROR", "details": {"errors": errors}},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        log_error(logger, exc, f"{request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
        )

    # Mount routes
    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(routes.router, prefix="/api")
    app.include_router(capture.router, prefix="/api")

    @app.get("/health")
    def health():
        """Service status with a database probe."""
        database = "ok"
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning(f"Health check database probe failed: {str(e)}")
            database = "unavailable"
        finally:
            db.close()
        return {
            "status": "healthy" if database == "ok" else "degraded",
            "version": __version__,
            "database": database,
            "faceModel": detector.is_initialized if analyzer is None else True,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.server_host, port=settings.server_port)
