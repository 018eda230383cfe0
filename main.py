import logging
import logging.config
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from config import settings
from database import AsyncSessionLocal, init_db
from errors import AgroCreditoError, ConcurrentModification
from api.accounts import router as accounts_router
from api.applications import router as applications_router
from api.documents import router as documents_router
from api.notifications import router as notifications_router
from api.programs import router as programs_router
from api.reports import router as reports_router
from api.simulator import router as simulator_router
from services.events import EventDispatcher
from services.notifications import register_notification_recorder

logging.config.dictConfig({
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"}
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {"level": settings.log_level.upper(), "handlers": ["console"]},
})

logger = logging.getLogger("agrocredito")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    dispatcher = EventDispatcher()
    register_notification_recorder(dispatcher, AsyncSessionLocal)
    app.state.dispatcher = dispatcher
    logger.info("%s started (database: %s)", settings.app_name, settings.database_url.split(":")[0])
    yield


app = FastAPI(
    title=settings.app_name,
    description="Agricultural credit simulation, applications and loan accounts",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AgroCreditoError)
async def agrocredito_error_handler(request: Request, exc: AgroCreditoError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    content = {"detail": exc.message, "error": exc.error_code, "details": exc.details}
    if isinstance(exc, ConcurrentModification):
        content["retryable"] = True
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(content))


app.include_router(simulator_router)
app.include_router(programs_router)
app.include_router(applications_router)
app.include_router(documents_router)
app.include_router(accounts_router)
app.include_router(notifications_router)
app.include_router(reports_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
