# main.py
from fastapi_limiter import FastAPILimiter
import routes
from contextlib import asynccontextmanager
from config.journal import JournalConfig
from util.constants import InternalURIs
from util.enums import Environment, Color
from util.errors import AppError
from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from config.settings import settings
from config.cache import close_redis, get_redis
from fastapi.responses import JSONResponse
from service.journal_coordinator import JournalCoordinator
from util.logger import init_logger


async def _real_ip(request: Request) -> str:
    if settings.TRUST_PROXY:
        fwd = request.headers.get("x-forwarded-for")
        if fwd:
            return fwd.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@asynccontextmanager
async def lifespan(fastApi: FastAPI):
    logger = init_logger()
    print(f"{Color.GREEN}Initializing...{Color.RESET}")
    if settings.REDIS_URL:
        try:
            redis = await get_redis()
            await FastAPILimiter.init(redis, identifier=_real_ip)
        except Exception as e:
            print("Failed to connect to Redis:", e)
            raise

    journal = JournalCoordinator.from_config(JournalConfig.from_settings(settings))
    fastApi.state.journal = journal
    print(f"{Color.BLUE}Server Started{Color.RESET}")

    try:
        yield
    finally:
        await journal.drain(timeout=settings.JOURNAL_TIMEOUT_SECONDS)
        try:
            await journal.aclose()
        except Exception as e:
            logger.error("journal.close.error err=%s", e)
        if settings.REDIS_URL:
            try:
                await close_redis()
            except Exception as e:
                logger.error("redis.close.error err=%s", e)

        print(f"{Color.RED}Server Shutdown{Color.RESET}")


app: FastAPI = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.ALLOWED_ORIGIN],
    allow_credentials=True,  # Allow cookies and other credentials
    allow_methods=["GET"],  # Lookups are read-only
    allow_headers=["Authorization", "Content-Type", "Accept"],  # Allowed HTTP Headers
)


@app.get(InternalURIs.ROOT)
async def index():
    return {
        "success": True,
        "message": f"Lookup gateway ready (journal profile: {settings.JOURNAL_PROFILE.value})",
    }


@app.get(InternalURIs.HEALTH)
async def healthz():
    return {"ok": True}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    content = {"success": False, "message": exc.message}
    if exc.extra is not None:
        content["detail"] = exc.extra
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(429)
async def ratelimit_handler(request: Request, exc):
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "rate_limited",
            "message": "Too many requests. Try again in 60s.",
        },
        headers={"Retry-After": "60"},
    )


routes.register_routes(app)

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=reload)
