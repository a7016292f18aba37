from functools import lru_cache

from fastapi import Depends, Request

from app.core.config import get_settings
from app.core.security import Principal, get_principal
from app.db.mongo import get_db
from app.integrations.registry import Integrations, build_integrations
from app.services.rate_limit import SlidingWindowRateLimiter
from app.services.registry import Services
from app.utils.mongo import serialize_mongo


@lru_cache
def get_integrations() -> Integrations:
    return build_integrations(get_settings())


def get_services(db=Depends(get_db), integrations: Integrations = Depends(get_integrations)) -> Services:
    return Services(db, integrations)


@lru_cache
def get_chat_rate_limiter() -> SlidingWindowRateLimiter:
    settings = get_settings()
    return SlidingWindowRateLimiter(
        window_seconds=settings.chat_rate_window_seconds,
        max_requests=settings.chat_rate_max_requests,
        prune_threshold=settings.chat_rate_prune_threshold,
    )


def chat_rate_limit(
    request: Request,
    principal: Principal = Depends(get_principal),
    limiter: SlidingWindowRateLimiter = Depends(get_chat_rate_limiter),
) -> Principal:
    limiter.hit((principal.id, request.method, request.url.path))
    return principal


def out(obj):
    """JSON-safe response body."""
    return serialize_mongo(obj)
