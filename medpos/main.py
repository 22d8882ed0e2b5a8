import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from medpos.config import Settings, get_settings
from medpos.core.exceptions import PosError
from medpos.core.logging import setup_logging
from medpos.database import Base, engine, session_scope
from medpos.models import import_all_models
from medpos.routers import (
    auth_router,
    dashboard_router,
    health_router,
    medicines_router,
    orders_router,
    purchase_orders_router,
    suppliers_router,
    users_router,
)
from medpos.services.user_service import ensure_bootstrap_admin

setup_logging()
settings: Settings = get_settings()
logger = logging.getLogger(__name__)

import_all_models()
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    with session_scope() as db:
        admin = ensure_bootstrap_admin(db)
    if admin is not None:
        logger.info("Bootstrap admin %s created", admin.username)
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PosError)
async def pos_error_handler(request: Request, exc: PosError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    payload = exc.to_payload()
    payload.setdefault("errors", [])
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=payload, headers=headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    payload = {
        "success": False,
        "message": PosError.default_message,
        "errors": [],
    }
    if settings.is_development:
        payload["detail"] = str(exc)
    return JSONResponse(status_code=500, content=payload)


app.include_router(health_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(medicines_router)
app.include_router(orders_router)
app.include_router(suppliers_router)
app.include_router(purchase_orders_router)
app.include_router(dashboard_router)


__all__ = ["app"]
