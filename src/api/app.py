"""FastAPI application factory"""

import logging
import time
import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.adapter.services.cache_service import create_cache_service
from src.adapter.services.payment_gateway_factory import create_payment_gateways
from src.api.error import ClientError, client_error_handler
from src.api.routes import memberships, payments, secours

logger = logging.getLogger(__name__)


def create_app(config) -> FastAPI:
    """
    Build the API application

    The cache and the payment gateways are created here and kept on
    app.state, so every app instance (and every test) owns its own.
    """
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if config.ENABLE_SENTRY and config.DSN_SENTRY:
        sentry_sdk.init(
            dsn=config.DSN_SENTRY,
            environment=config.SENTRY_ENVIRONMENT,
            traces_sample_rate=0.0,
        )

    app = FastAPI(
        title="Elverra Membership Service",
        description="Memberships, membership cards, payments and Ô Secours tokens",
        version="1.0.0",
    )

    app.state.config = config
    app.state.cache = create_cache_service(config.CACHE_BACKEND, config.REDIS_URL)
    app.state.payment_gateways = create_payment_gateways(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config.ENABLE_LOGGING_MIDDLEWARE:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)"
            )
            return response

    app.add_exception_handler(ClientError, client_error_handler)

    app.include_router(memberships.router, prefix=config.API_PREFIX)
    app.include_router(payments.router, prefix=config.API_PREFIX)
    app.include_router(secours.router, prefix=config.API_PREFIX)

    @app.on_event("shutdown")
    async def close_cache():
        close = getattr(app.state.cache, "close", None)
        if close is not None:
            await close()

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
