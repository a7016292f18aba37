import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.api import admin, auth, chat, complaints, department, leaderboard, notifications, rewards, telephony, users
from app.api.deps import get_integrations
from app.core.config import get_settings
from app.core.errors import DomainError, RateLimited
from app.core.logging import configure_logging
from app.db.mongo import ensure_indexes, mongo
from app.utils.uploads import upload_dir

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    if mongo.db is None:
        mongo.connect()
    await ensure_indexes(mongo.db)
    logger.info("%s started (%s)", settings.app_name, settings.app_env)
    yield
    await get_integrations().scheduler.shutdown()
    mongo.close()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server error"})


# telephony webhooks share the /complaints prefix; register them first
app.include_router(telephony.router)
app.include_router(complaints.router)
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(department.router)
app.include_router(chat.router)
app.include_router(notifications.router)
app.include_router(rewards.router)
app.include_router(leaderboard.router)
app.include_router(users.router)

# static uploads (complaint photos, chat images)
app.mount("/uploads", StaticFiles(directory=str(upload_dir())), name="uploads")


@app.get("/")
def root():
    return {"ok": True, "docs": "/docs"}
