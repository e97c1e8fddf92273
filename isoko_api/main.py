"""
FastAPI application entry point.

- Enables CORS for the Streamlit front end
- Registers all route modules
- Renders every error into the {success: false, message} envelope
- Closes the database connection on shutdown

Run with:  uvicorn isoko_api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from isoko_api.config import configure_logging, settings
from isoko_api.database import close_connections
from isoko_api.routes import (
    auth,
    cashier,
    clients,
    dashboard,
    due_loans,
    health,
    loan_types,
    loans,
    recovery,
    repayments,
    supervisor,
    users,
)

configure_logging()
logger = logging.getLogger("isoko_api")


# ── Lifespan (startup + shutdown) ─────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: the Mongo client is created lazily on first use.
    Shutdown: close it cleanly."""
    yield
    await close_connections()


# ── App instance ──────────────────────────────────────
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error envelope ────────────────────────────────────
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(status_code=422, content={"success": False, "message": message})


# ── Routes ────────────────────────────────────────────
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(clients.router)
app.include_router(loan_types.router)
app.include_router(loans.router)
app.include_router(repayments.router)
app.include_router(due_loans.router)
app.include_router(recovery.router)
app.include_router(cashier.router)
app.include_router(supervisor.router)
app.include_router(dashboard.router)


@app.get("/", tags=["Root"])
async def root():
    """Minimal root endpoint to confirm the API is running."""
    return {"success": True, "message": "Isoko Lending API is running."}
