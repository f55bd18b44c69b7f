import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

import uvicorn

from identity_manager.config import settings
from identity_manager.core.error_handlers import register_error_handlers
from identity_manager.database import Base, SessionLocal, engine
from identity_manager.routers import auth, tickets, users
from identity_manager.seed import seed_demo_data, seed_roles
from identity_manager.web import admin, dashboard, pages
from identity_manager.web.rendering import redirect
from identity_manager.web.session import AccessDenied, LoginRequired

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def init_database() -> None:
    """Create missing tables and seed reference data."""
    if settings.auto_create_schema:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_roles(db)
        if settings.seed_demo_data:
            seed_demo_data(db)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    logger.info(f"{settings.app_name} started ({settings.app_env})")
    yield


configure_logging()

app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Browser session cookie for the web console
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key, same_site="lax")

register_error_handlers(app)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
    return redirect("/login")


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied) -> RedirectResponse:
    return redirect("/403")


app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(tickets.router)
app.include_router(pages.router)
app.include_router(admin.router)
app.include_router(dashboard.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy", "service": "identity_manager"}


if __name__ == "__main__":
    uvicorn.run(
        "identity_manager.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        loop="asyncio",  # Explicitly use asyncio instead of auto (which tries uvloop)
    )
