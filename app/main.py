import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core import config
from app.core.exceptions import JobBoardError
from app.core.logging_config import setup_logging

# ✅ Import All API Routes
from app.api.routes import (
    admin,
    applications,
    auth,
    billing,
    companies,
    crypto,
    dashboard,
    employer,
    health,
    jobs,
    payments_ws,
    saved,
    talent,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)
    if config.RUN_MIGRATIONS:
        from app.db.migrate import run_migrations
        run_migrations()
    logger.info("Job board API started")
    yield
    logger.info("Job board API stopped")


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="ChainHire API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(JobBoardError)
async def job_board_error_handler(request: Request, exc: JobBoardError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.detail}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail},
    )


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(jobs.router)
app.include_router(companies.router)
app.include_router(employer.router)
app.include_router(applications.router)
app.include_router(saved.router)
app.include_router(talent.router)
app.include_router(billing.router)
app.include_router(crypto.router)
app.include_router(dashboard.router)
app.include_router(admin.router)
app.include_router(payments_ws.router)


@app.get("/")
def root():
    return {"status": "ChainHire API running"}
