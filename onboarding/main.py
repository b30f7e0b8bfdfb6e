from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from onboarding import logger
from onboarding.api import cur_version
from onboarding.api.routers import public_routers
from onboarding.common.custom_exceptions import register_all_exceptions
from onboarding.common.logging_setup import setup_logging, shutdown_logging
from onboarding.config.settings import Settings, config_settings
from onboarding.db.connection import build_engine, build_session_maker
from onboarding.middlewares.error_middleware import UnhandledErrorMiddleware
from onboarding.middlewares.rate_limit_middleware import RateLimitHeadersMiddleware
from onboarding.middlewares.request_id_middleware import RequestIdMiddleware
from onboarding.otp.channels import EmailChannel, SmsChannel, build_email_channel, build_sms_channel


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging(settings)

    engine = build_engine(settings)
    app.state.engine = engine
    app.state.session_maker = build_session_maker(engine)

    if app.state.email_channel is None:
        app.state.email_channel = build_email_channel(settings)
    if app.state.sms_channel is None:
        app.state.sms_channel = build_sms_channel(settings)

    app.state.redis = Redis.from_url(settings.REDIS_URL) if settings.RATE_LIMIT_ENABLED else None

    logger.info("app.started", extra={"env": settings.ENV.value, "version": cur_version})
    try:
        yield
    finally:
        if app.state.redis is not None:
            await app.state.redis.aclose()
        await engine.dispose()
        logger.info("app.stopped")
        shutdown_logging()


def create_app(settings: Optional[Settings] = None,
               email_channel: Optional[EmailChannel] = None,
               sms_channel: Optional[SmsChannel] = None):
    settings = settings or config_settings

    app = FastAPI(
        title="Onboarding",
        version=cur_version,
        lifespan=app_lifespan)

    app.state.settings = settings
    app.state.email_channel = email_channel
    app.state.sms_channel = sms_channel

    app.include_router(public_routers)

    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(RateLimitHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)
    register_all_exceptions(app)

    return app


app = create_app()
