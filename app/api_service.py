from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config.settings import settings
from ops.structured_logger import setup_logging
from reminders.scheduler import ReminderJob, ReminderScheduler

from app.routers.reminders import router as reminders_router

setup_logging()

log = logging.getLogger("coachpay.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    job = getattr(app.state, "reminder_job", None) or ReminderJob()
    app.state.reminder_job = job
    scheduler = None
    if settings.REMINDER_SCHEDULER_ENABLED:
        scheduler = ReminderScheduler(job=job)
        scheduler.start()
    app.state.reminder_scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()


app = FastAPI(title="CoachPay Reminders", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    log.warning(
        "validation_error",
        extra={"extra": {"event": "validation_error", "path": request.url.path, "method": request.method}},
    )
    return JSONResponse(status_code=422, content={"success": False, "detail": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error(
        "internal_unhandled_exception",
        extra={
            "extra": {
                "event": "internal_unhandled_exception",
                "error_type": type(exc).__name__,
                "message": str(exc),
                "path": request.url.path,
                "method": request.method,
            }
        },
        exc_info=True,
    )
    return JSONResponse(status_code=500, content={"success": False, "error": "internal_unhandled_exception"})


app.include_router(reminders_router, prefix="/api", tags=["notifications"])
