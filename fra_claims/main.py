# fra_claims/main.py
"""
FastAPI entrypoint for the FRA claim tracker.

Notes:
- Settings come from the environment (.env is loaded by fra_claims.config)
- The store (database or in-memory) and the intake engine are built once here
  and handed to routes through fra_claims.deps
- All routers are mounted under /api
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fra_claims.config import Settings, load_settings
from fra_claims.deps import build_intake, build_store
from fra_claims.routes.claims import router as claims_router
from fra_claims.routes.dashboard import router as dashboard_router
from fra_claims.routes.uploads import router as uploads_router
from fra_claims.routes.users import router as users_router
from fra_claims.services.intake import IntakeEngine
from fra_claims.storage.base import ClaimStore

logger = logging.getLogger(__name__)


def _error_body(message) -> dict:
    # the dashboard client reads `message`; FastAPI clients read `detail`
    return {"message": message, "detail": message}


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())[1:])
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ClaimStore] = None,
    intake: Optional[IntakeEngine] = None,
) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="FRA Claim Tracker API")
    app.state.settings = settings
    app.state.store = store or build_store(settings)
    app.state.intake = intake or build_intake(settings)
    logger.info(
        "using %s store, intake=%s",
        type(app.state.store).__name__,
        type(app.state.intake).__name__,
    )

    app.include_router(dashboard_router, prefix="/api")
    app.include_router(uploads_router, prefix="/api")
    app.include_router(claims_router, prefix="/api")
    app.include_router(users_router, prefix="/api")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        message = _describe_validation(exc)
        logger.info("rejected %s %s: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content=_error_body(message))

    @app.on_event("startup")
    async def on_startup():
        settings.upload_dir.mkdir(parents=True, exist_ok=True)
        await app.state.store.init()

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.store.close()

    @app.get("/")
    async def root():
        return {"message": "Backend running"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/ping")
    def ping():
        return {"message": "pong", "service": "FRA Claim Tracker"}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("fra_claims.main:app", host="0.0.0.0", port=8000)
