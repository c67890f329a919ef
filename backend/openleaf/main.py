import logging
import os
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware
from openleaf.api.router import api_router
from openleaf.core.config import settings
from openleaf.core.logging import configure_logging, request_id_ctx_var, ensure_request_id
from openleaf.db.session import init_db
from openleaf.services.storage import PUBLIC_PREFIX

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    logger.info("OpenLeaf started", extra={"environment": settings.environment})
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie="openleaf_session",
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.environment.lower() == "prod",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

RATE_LIMIT_WINDOW = 60
_rate_limit_store: dict[str, list[float]] = {}


def _rate_limited(client_ip: str, now: float) -> bool:
    # Expired histories are dropped so idle clients do not accumulate.
    for ip in list(_rate_limit_store):
        if not _rate_limit_store[ip] or now - _rate_limit_store[ip][-1] >= RATE_LIMIT_WINDOW:
            del _rate_limit_store[ip]
    history = [t for t in _rate_limit_store.get(client_ip, []) if now - t < RATE_LIMIT_WINDOW]
    if len(history) >= settings.rate_limit_per_min:
        _rate_limit_store[client_ip] = history
        return True
    history.append(now)
    _rate_limit_store[client_ip] = history
    return False


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = ensure_request_id(request.headers.get("X-Request-ID"))
    request_id_ctx_var.set(request_id)
    if settings.environment.lower() != "prod":
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
    client_ip = request.client.host if request.client else "unknown"
    if _rate_limited(client_ip, time.time()):
        return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded"})
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(SQLAlchemyError)
async def database_error(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"detail": "Database error"})


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(api_router)

os.makedirs(settings.upload_dir, exist_ok=True)
app.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.upload_dir), name="uploads")
