# agenda/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from agenda.config import get_settings
from agenda.db import init_db
from agenda.errors import StorageUnavailable
from agenda.logging_config import setup_logging
from agenda.routers import appointments_routes, professionals_routes

settings = get_settings()
setup_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

app = FastAPI(title="Agenda scheduling engine")

app.include_router(appointments_routes.router)
app.include_router(professionals_routes.router)


@app.on_event("startup")
def startup_event():
    logger.info("Starting up (database=%s, conflict window=±%d min)",
                settings.DATABASE_URL, settings.CONFLICT_WINDOW_MINUTES)
    init_db()


@app.exception_handler(StorageUnavailable)
def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
    logger.error("Storage unavailable on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"success": False, "error": exc.message, "error_code": exc.code})


@app.get("/health")
def health_check():
    return {"status": "ok"}
