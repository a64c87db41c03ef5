"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shopfront.auth import OIDCProvider, RequestAuthenticator, SessionBootstrapper, SessionTokenIssuer
from shopfront.auth.exceptions import DiscoveryError
from shopfront.auth.handlers import router as auth_router
from shopfront.config import settings
from shopfront.database import Database
from shopfront.features.catalog.handlers import router as catalog_router
from shopfront.features.customers.handlers import router as customers_router
from shopfront.features.orders.handlers import router as orders_router
from shopfront.features.orders.notifications import OrderNotifier
from shopfront.notifications import CourierService, NotificationDispatcher
from shopfront.services.rate_limiter import limiter

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    # Startup
    database = Database.from_settings(settings)
    session_issuer = SessionTokenIssuer(
        secret=settings.jwt_secret,
        ttl=timedelta(hours=settings.session_token_ttl_hours),
    )

    provider: OIDCProvider | None = None
    bootstrapper: SessionBootstrapper | None = None
    if settings.oidc_enabled:
        provider = OIDCProvider.from_settings(settings)
        try:
            await provider.discover()
        except DiscoveryError as e:
            # Discovery is retried on first use
            logger.error(
                f"Failed to initialize OIDC provider: {e}",
                exc_info=True,
                extra={"error_type": "oidc_init_failed"},
            )
        bootstrapper = SessionBootstrapper(
            provider=provider,
            issuer=session_issuer,
            use_pkce=settings.oidc_use_pkce,
            state_cookie_name=settings.oidc_state_cookie_name,
        )
        logger.info(
            "OIDC login enabled",
            extra={"provider_url": settings.oidc_provider_url, "pkce": settings.oidc_use_pkce},
        )
    else:
        logger.info("OIDC client id not configured, accepting session tokens only")

    dispatcher = NotificationDispatcher()

    app.state.db = database
    app.state.session_issuer = session_issuer
    app.state.oidc_provider = provider
    app.state.bootstrapper = bootstrapper
    app.state.authenticator = RequestAuthenticator.build(session_issuer, provider)
    app.state.dispatcher = dispatcher
    app.state.order_notifier = OrderNotifier(
        courier=CourierService.from_settings(settings),
        dispatcher=dispatcher,
        admin_email=settings.admin_email,
        currency=settings.currency_label,
    )

    yield

    # Shutdown
    try:
        await dispatcher.drain(timeout=settings.notification_drain_timeout_seconds)
    except Exception as e:
        logger.error(f"Error draining notifications: {e}", exc_info=True)

    if provider is not None:
        try:
            await provider.close()
        except Exception as e:
            logger.error(f"Error during OIDC provider cleanup: {e}", exc_info=True)

    database.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Shopfront API",
    description="E-commerce API for customers, catalog and orders with OIDC login",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

origins = settings.cors_origins.split(",")
logger.info(f"Origins : {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(customers_router, prefix=settings.api_prefix)
app.include_router(catalog_router, prefix=settings.api_prefix)
app.include_router(orders_router, prefix=settings.api_prefix)


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str


@app.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint."""
    return HealthCheckResponse(status="ok")
