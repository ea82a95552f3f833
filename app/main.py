import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def _seed_admin_user() -> None:
    """Make sure the configured admin account exists."""
    from app.database import SessionLocal
    from app.services.auth_service import ensure_admin_user

    db = SessionLocal()
    try:
        ensure_admin_user(db)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Could not seed admin user on startup: %s", exc)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _seed_admin_user()
    settings.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get(f"{settings.API_PREFIX}/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from app.routers import auth  # noqa: E402

app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Auth"])

# Bulk registration import
from app.routers import imports  # noqa: E402

app.include_router(
    imports.router,
    prefix=f"{settings.API_PREFIX}/import",
    tags=["Import"],
)
