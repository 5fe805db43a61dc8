"""Application factory and top-level wiring for BeanBook."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    InvalidTransitionError,
    http_exception_handler,
    invalid_transition_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .db.migrate import run_migrations
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware

# Registers every table with the metadata before create_all runs.
from . import models as _models  # noqa: F401

app = FastAPI(title=settings.APP_NAME)

# ---------- DB init/migrations ----------
Base.metadata.create_all(bind=engine)
run_migrations(engine)

# ---------- Middleware ----------
if settings.ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

# ---------- Routers ----------
from .routers import api_auth as api_auth_router  # type: ignore

app.include_router(api_auth_router.router)

from .routers import api_beans as api_beans_router  # type: ignore

app.include_router(api_beans_router.router)

from .routers import api_inventory as api_inventory_router  # type: ignore

app.include_router(api_inventory_router.router)

from .routers import api_tastings as api_tastings_router  # type: ignore

app.include_router(api_tastings_router.router)

from .routers import api_brewing as api_brewing_router  # type: ignore

app.include_router(api_brewing_router.router)

from .routers import api_brewing_log as api_brewing_log_router  # type: ignore

app.include_router(api_brewing_log_router.router)

from .routers import api_costs as api_costs_router  # type: ignore

app.include_router(api_costs_router.router)

from .routers import api_freshness as api_freshness_router  # type: ignore

app.include_router(api_freshness_router.router)

from .routers import api_dashboard as api_dashboard_router  # type: ignore

app.include_router(api_dashboard_router.router)

# ---------- Exception handling ----------
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(InvalidTransitionError, invalid_transition_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["app"]
