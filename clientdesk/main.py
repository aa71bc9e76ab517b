import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clientdesk.core.config import settings
from clientdesk.core.errors import install_error_handlers
from clientdesk.core.http_hardening import install_http_hardening
from clientdesk.core.log_config import configure_logging
from clientdesk.api.router import router as api_router
from clientdesk.db.session import Base, engine
from clientdesk.models import client, user  # noqa: F401  registers tables on Base

configure_logging()
_LOG = logging.getLogger("clientdesk.main")
_STARTED_AT = time.monotonic()


def _warn_about_auth_bypass() -> None:
    if settings.auth_bypass_active:
        _LOG.warning(
            "AUTH_DEV_BYPASS is ON: token checks are skipped and every request runs as an admin. "
            "Never enable this outside local development."
        )
    elif settings.AUTH_DEV_BYPASS:
        _LOG.warning("AUTH_DEV_BYPASS is set but ignored because APP_ENV=%s", settings.APP_ENV)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    _warn_about_auth_bypass()
    if settings.DB_CREATE_ALL:
        Base.metadata.create_all(bind=engine)
    _LOG.info("%s started environment=%s", settings.APP_NAME, settings.APP_ENV)
    yield
    engine.dispose()
    _LOG.info("Shutting down gracefully...")


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    max_age=86400,
)
install_http_hardening(app)
install_error_handlers(app)

app.include_router(api_router, prefix=settings.API_PREFIX)


def health_payload() -> dict:
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "environment": settings.APP_ENV,
        "version": settings.APP_VERSION,
    }


@app.get("/health")
def health():
    return health_payload()


@app.get(f"{settings.API_PREFIX}/health", include_in_schema=False)
def api_health():
    return health_payload()
