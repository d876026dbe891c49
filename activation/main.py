# activation/main.py
# Device activation status server
# Run with: uvicorn activation.main:app --host 0.0.0.0 --port 10000
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from activation.config import Settings
from activation.database import make_engine
from activation.errors import (
    ApiError,
    LoginRequired,
    StoreWriteError,
    api_error_handler,
    login_required_handler,
    store_write_error_handler,
)
from activation.models import DeviceRecord
from activation.routes import admin as admin_router
from activation.routes import devices as devices_router
from activation.sessions import SessionManager
from activation.store import JsonFileRecordStore, RecordStore, SqlRecordStore

logger = logging.getLogger(__name__)

EXAMPLE_RECORDS = {
    "EXAMPLE01": DeviceRecord(
        status="active",
        plan="Monthly",
        expiry="2026-01-31T23:59:59Z",
        notes="Test device",
    ),
}

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {duration:.3f}s")
        return response


class NoStoreAdminMiddleware(BaseHTTPMiddleware):
    """Admin pages and admin API answers must never be served from a cache."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.url.path == "/admin" or request.url.path.startswith("/admin/"):
            for name, value in NO_STORE_HEADERS.items():
                response.headers[name] = value
        return response


def build_store(settings: Settings) -> RecordStore:
    if settings.database_url:
        return SqlRecordStore(make_engine(settings.database_url))
    return JsonFileRecordStore(settings.data_file)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    sessions: Optional[SessionManager] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if store is None:
        store = build_store(settings)
    if sessions is None:
        sessions = SessionManager(idle_timeout=settings.session_idle_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.seed_example:
            store.seed(EXAMPLE_RECORDS)
        logger.info(f"Device activation server ready on port {settings.port}")
        yield

    app = FastAPI(title="Device Activation Server", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.sessions = sessions

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(StoreWriteError, store_write_error_handler)

    app.add_middleware(NoStoreAdminMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(devices_router.router)
    app.include_router(admin_router.router)

    @app.get("/")
    def root():
        return {"status": "ok"}

    return app


app = create_app()


def run():
    import uvicorn

    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
