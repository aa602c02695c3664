import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
import sentry_sdk
from fastapi import Depends, FastAPI
from redis.exceptions import RedisError
from sqlalchemy import text

from focus_tracker.config import Settings, get_settings
from focus_tracker.database import engine
from focus_tracker.schemas.meta import MetaResponse

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection and connect Redis
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.redis = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    try:
        await app.state.redis.ping()
    except (RedisError, OSError) as e:
        # Rate limiting is skipped while Redis is None
        logger.warning("Redis unavailable at startup, rate limiting disabled: %s", e)
        await app.state.redis.close()
        app.state.redis = None

    yield

    # Shutdown
    if app.state.redis is not None:
        await app.state.redis.close()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Middleware
from focus_tracker.middleware.rate_limit import RateLimitMiddleware  # noqa: E402

app.add_middleware(RateLimitMiddleware, limit_per_minute=settings.RATE_LIMIT_PER_MINUTE)

from focus_tracker.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from focus_tracker.routers.auth import router as auth_router  # noqa: E402
from focus_tracker.routers.focus_time import router as focus_time_router  # noqa: E402
from focus_tracker.routers.habits import router as habits_router  # noqa: E402

app.include_router(auth_router)
app.include_router(habits_router)
app.include_router(focus_time_router)


@app.get("/", response_model=MetaResponse)
async def index(app_settings: Settings = Depends(get_settings)):
    return MetaResponse(
        name=app_settings.APP_NAME,
        description=app_settings.APP_DESCRIPTION,
        version=app_settings.APP_VERSION,
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
