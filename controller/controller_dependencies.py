# controller/controller_dependencies.py
from fastapi import Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from service.journal_coordinator import JournalCoordinator

_limiter = RateLimiter(times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS)


async def rate_limit(request: Request, response: Response) -> None:
    # Limiting needs Redis; without REDIS_URL the gateway runs unthrottled.
    if FastAPILimiter.redis is None:
        return
    await _limiter(request, response)


def get_journal(request: Request) -> JournalCoordinator:
    return request.app.state.journal
