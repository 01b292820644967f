from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import (
    admin,
    api_keys,
    billing,
    chat,
    files,
    heygen_routes,
    images,
    memories,
    platform_keys,
    public_api,
    users,
    videos,
    voices,
)
from .avatars import router as avatars_router
from .catalog.routes import router as catalog_router
from .config import CORS_ORIGINS, LOG_LEVEL
from .errors import AvatarHubError
from .storage import init_db
from .training import router as training_router

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("avatarhub.main")

app = FastAPI(title="AvatarHub API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS or ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------
# Startup
# ----------------------------

@app.on_event("startup")
def _startup() -> None:
    init_db()


# Ensure the schema exists even when lifespan events are not executed
# (e.g. Starlette TestClient instantiated without a context manager).
init_db()


# ----------------------------
# Error envelope
# ----------------------------

def _error(status_code: int, message: str, details=None) -> JSONResponse:
    content = {"error": message}
    if details is not None:
        content["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(AvatarHubError)
async def avatarhub_error_handler(_: Request, exc: AvatarHubError):
    if exc.status_code >= 500:
        logger.warning("%s: %s", type(exc).__name__, exc.message)
    return _error(exc.status_code, exc.message, exc.details)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, str):
        return _error(exc.status_code, exc.detail)
    return _error(exc.status_code, "Request failed", exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError):
    return _error(400, "Invalid request", exc.errors())


@app.exception_handler(Exception)
async def unhandled_exception_handler(_: Request, exc: Exception):
    logger.exception("Unhandled error: %s", exc)
    return _error(500, "Internal server error")


# ----------------------------
# Routes
# ----------------------------

for router in (
    users.router,
    api_keys.router,
    platform_keys.router,
    files.router,
    catalog_router,
    avatars_router,
    training_router,
    memories.router,
    chat.router,
    public_api.router,
    images.router,
    videos.router,
    heygen_routes.router,
    voices.router,
    billing.router,
    billing.admin_router,
    admin.router,
):
    app.include_router(router)


@app.get("/health")
def health():
    return {"ok": True, "service": "avatarhub-backend", "version": app.version}
