from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from owlrsvp.api.v1.routes import admin as admin_router, events as events_router, rsvps as rsvps_router, health as health_router
from owlrsvp.cache.redis_client import cache
from owlrsvp.core.config import settings
from owlrsvp.core.limiter import limiter
from owlrsvp.core.logging import logger
from owlrsvp.db.session import engine, Base
# Registers the models on Base.metadata
from owlrsvp.db import models  # noqa: F401

app = FastAPI(title="OwlRSVP")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(events_router.router)
api_router.include_router(rsvps_router.router)
api_router.include_router(admin_router.router)
api_router.include_router(health_router.router)

app.include_router(api_router)

@app.on_event("startup")
async def on_startup():
    # Alembic owns the schema in production; create_all keeps local runs simple
    if settings.ENVIRONMENT != "production":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    logger.info(f"OwlRSVP started ({settings.ENVIRONMENT})")

@app.on_event("shutdown")
async def on_shutdown():
    await cache.close()
    await engine.dispose()
