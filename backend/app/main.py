from __future__ import annotations
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import activity, auth, health, jobs, pipeline, progress, schedule, system
from app.core.config import configure_logging, settings, validate_settings
from app.db.init_db import init_db
from app.services.scheduler import get_scheduler

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    configure_logging(settings)
    validate_settings(settings)
    init_db()
    get_scheduler().start()
    logger.info("%s started (%s)", settings.app_name, settings.env)


@app.on_event("shutdown")
def on_shutdown():
    get_scheduler().stop()


app.include_router(health.router)
app.include_router(progress.router)
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(pipeline.router, prefix=settings.api_prefix)
app.include_router(activity.router, prefix=settings.api_prefix)
app.include_router(jobs.router, prefix=settings.api_prefix)
app.include_router(schedule.router, prefix=settings.api_prefix)
app.include_router(system.router, prefix=settings.api_prefix)
