import logging
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from marketplace.config import Settings
from marketplace.database import build_engine, build_session_factory, init_db
from marketplace.routers import orders, products, storefronts
from marketplace.services.storefront_service import StorefrontService
from marketplace.utils.crypto import CredentialCipher
from marketplace.utils.logger import logger


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and its process-wide services.

    The encryption key and database are resolved here, once. A missing or
    malformed key raises before the app can serve a single request.
    """
    if app_settings is None:
        from marketplace.config import settings as app_settings

    cipher = CredentialCipher.from_settings(app_settings)
    engine = build_engine(app_settings.DATABASE_URL)
    init_db(engine)

    app = FastAPI(title="Marketplace API", version="1.0.0")
    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.storefront_service = StorefrontService(cipher)

    origins = app_settings.allowed_origins
    if app_settings.FRONTEND_URL and app_settings.FRONTEND_URL not in origins:
        origins.append(app_settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
        max_age=3600,
    )

    # Request logging middleware with request ID
    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        rid = uuid.uuid4().hex[:8]
        request.state.rid = rid
        logging.info("→ %s %s rid=%s", request.method, request.url.path, rid)
        try:
            resp = await call_next(request)
            logging.info("← %s status=%s rid=%s", request.url.path, resp.status_code, rid)
            resp.headers["X-Request-ID"] = rid
            return resp
        except Exception:
            logging.exception("Unhandled error rid=%s", rid)
            error_resp = JSONResponse(
                {"error": "internal_error", "rid": rid, "detail": "Internal server error"},
                status_code=500,
            )
            error_resp.headers["X-Request-ID"] = rid
            return error_resp

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        detail = f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}"
        return JSONResponse({"detail": detail}, status_code=status.HTTP_400_BAD_REQUEST)

    app.include_router(orders.router)
    app.include_router(products.router)
    app.include_router(storefronts.router)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    @app.get("/healthz/db")
    def healthz_db():
        """Database health check endpoint"""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            return {"status": "ok", "database": "connected"}
        except Exception as e:
            logger.exception("Database health check failed")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Database unavailable: {type(e).__name__}",
            )

    logger.info("Marketplace API configured (storefront encryption key loaded)")
    return app
