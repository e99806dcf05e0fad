import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from respos.core.config import AUTO_CREATE_SCHEMA, CORS_ORIGINS, IS_TEST
from respos.core.database import Base, engine
from respos.core.errors import register_exception_handlers
from respos.core.logging_setup import configure_logging, install_process_fault_handlers
from respos.core.startup_checks import ensure_migrations_applied, validate_database_environment
from respos.middleware.observability import ObservabilityMiddleware
import respos.models  # models must be registered before create_all

from respos.routers.auth import router as auth_router
from respos.routers.organizations import router as organizations_router
from respos.routers.users import router as users_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    if not IS_TEST:
        install_process_fault_handlers(asyncio.get_running_loop())
    yield


app = FastAPI(
    title="Respos User Service",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)
register_exception_handlers(app)


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        if AUTO_CREATE_SCHEMA:
            # local SQLite databases are created on the fly, everything else goes through alembic
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise
    logger.info("%s ready", STARTUP_PREFIX)


# Routers: organization paths first so /users/organizations never reaches /users/{user_id}
app.include_router(auth_router)
app.include_router(organizations_router)
app.include_router(users_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
