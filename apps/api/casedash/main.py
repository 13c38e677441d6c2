import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import psycopg
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from casedash.config import Settings, load_settings
from casedash.infrastructure.db import connection as db
from casedash.infrastructure.security import rate_limit
from casedash.interfaces.api.routers import auth, clients, data, kpi, lookups, system

API_PREFIX = "/api"

log = logging.getLogger("casedash")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await db.init_pool(app.state.settings)
    log.info("Case dashboard API ready")
    try:
        yield
    finally:
        await rate_limit.close()
        await db.close_pool()


def _validation_message(exc: RequestValidationError) -> str:
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    return "Invalid or missing fields: " + ", ".join(fields)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": _validation_message(exc)},
    )


async def store_exception_handler(request: Request, exc: psycopg.Error) -> JSONResponse:
    log.error(
        "Store failure on %s %s",
        request.method,
        request.url.path,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Server error"},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    app = FastAPI(title="Case Dashboard API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(psycopg.Error, store_exception_handler)

    app.include_router(system.router, prefix=API_PREFIX)
    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(kpi.router, prefix=API_PREFIX)
    app.include_router(lookups.router, prefix=API_PREFIX)
    app.include_router(clients.router, prefix=API_PREFIX)
    app.include_router(data.router, prefix=API_PREFIX)

    # Mounted last so /api routes win over the catch-all static mount.
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:
        log.info("Static directory not found at %s", static_dir)

    return app
