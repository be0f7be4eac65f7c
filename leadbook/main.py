import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadbook.api import auth, leads
from leadbook.core.config import settings
from leadbook.core.database import Base, engine
from leadbook.core.errors import LeadbookError
from leadbook.core.security import get_current_account
from leadbook.scheduler import shutdown_scheduler, start_scheduler
from leadbook.workers.followup_reminder import run_followup_reminders

from leadbook.models import *

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


app = FastAPI(title="Leadbook Backend")

# -------------------------
# CORS
# -------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------
# Include Routers
# -------------------------
app.include_router(auth.router)
app.include_router(leads.router)


# -------------------------
# Error handlers
# -------------------------
@app.exception_handler(LeadbookError)
async def leadbook_error_handler(request: Request, exc: LeadbookError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"🔥 Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# -------------------------
# DB INIT
# -------------------------
Base.metadata.create_all(bind=engine)

# -------------------------
# FastAPI lifecycle
# -------------------------

@app.on_event("startup")
def startup():
    if settings.SCHEDULER_ENABLED:
        start_scheduler()


@app.on_event("shutdown")
def shutdown():
    shutdown_scheduler()

# -------------------------
# Routes
# -------------------------

@app.get("/")
def root():
    return {"status": "running"}


# Manual trigger (admin)
@app.post("/run/followup-reminders", dependencies=[Depends(get_current_account)])
def run_followup_reminders_now():
    run_followup_reminders()
    return {"status": "followup sweep completed"}
