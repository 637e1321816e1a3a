"""FastAPI application factory."""

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from src.constants import (
    DEFAULT_API_PREFIX,
    DEFAULT_IDENTITY_HEADER,
    DOCS_URL,
    OPENAPI_URL,
    REDOC_URL,
    SERVICE_NAME,
    SERVICE_VERSION,
)

from .middleware import add_middleware, register_exception_handlers
from .routers import (
    health_router,
    chat_router,
    workflows_router,
    settings_router,
    usage_router,
    tiers_router,
    billing_router,
)

logger = logging.getLogger(__name__)

# =============================================================================
# OpenAPI Configuration
# =============================================================================

OPENAPI_TAGS = [
    {
        "name": "Health",
        "description": "Service health checks and status endpoints",
    },
    {
        "name": "Chat",
        "description": "Chat completions proxied to the model provider, gated by subscription tier",
    },
    {
        "name": "Workflows",
        "description": "Automation workflow executions, on the managed engine or an enterprise custom endpoint",
    },
    {
        "name": "Settings",
        "description": "Custom automation endpoint settings (enterprise)",
    },
    {
        "name": "Usage",
        "description": "Usage counters, quota and recent activity for the caller",
    },
    {
        "name": "Tiers",
        "description": "Public listing of subscription tiers",
    },
    {
        "name": "Billing",
        "description": "Stripe webhook receiver for subscription lifecycle events",
    },
]

API_DESCRIPTION = """
Subscription-gated proxy for chat completions and automation workflows.

## Usage Gate
Every chat and workflow call is checked against the caller's subscription tier:
- **Entitlement**: the model or workflow must be in the tier's allow-list
- **Quota**: usage counters must be below the tier quota

Usage is counted only after the downstream call succeeded.

## Billing
Tier, subscription status and usage periods follow Stripe subscription events.

---

## Authentication
The upstream auth layer forwards the resolved user id in the `X-User-ID` header
(configurable with `IDENTITY_HEADER`). Requests without it get 401.

---

## Error Format
Errors return `success: false` with `error`, `message` and optional `details`.
Downstream errors keep the downstream status and body.
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""

    # Startup
    logger.info(f"Starting {SERVICE_NAME} API...")

    # Load tier policy table (fail-fast on bad configuration)
    from src.core.usage import get_tier_policy_table
    get_tier_policy_table()
    logger.info("Tier policy table loaded")

    # Initialize database connection pool
    try:
        from src.db.connection import db
        await db.get_engine_async()
        logger.info("Database connection pool initialized")
    except Exception as e:
        logger.warning(f"Database initialization skipped: {e}")

    yield

    # Shutdown - outbound client first, then database
    logger.info(f"Shutting down {SERVICE_NAME} API...")

    try:
        from src.core.forwarding import close_forwarder
        await close_forwarder()
    except Exception as e:
        logger.warning(f"Forwarder shutdown error: {e}")

    try:
        from src.db.connection import db
        await db.close_all()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Database cleanup error: {e}")

    logger.info("Shutdown complete")


def custom_openapi(app: FastAPI) -> Dict[str, Any]:
    """Generate custom OpenAPI schema with security schemes and server configuration."""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=OPENAPI_TAGS,
    )

    # Add server configuration
    openapi_schema["servers"] = [
        {"url": "http://localhost:8000", "description": "Local development server"},
    ]

    # Add security schemes
    if "components" not in openapi_schema:
        openapi_schema["components"] = {}

    openapi_schema["components"]["securitySchemes"] = {
        "UserId": {
            "type": "apiKey",
            "in": "header",
            "name": os.getenv("IDENTITY_HEADER", DEFAULT_IDENTITY_HEADER),
            "description": "Resolved user id forwarded by the auth layer",
        },
        "StripeSignature": {
            "type": "apiKey",
            "in": "header",
            "name": "Stripe-Signature",
            "description": "Stripe webhook signature (billing webhook only)",
        },
    }

    # Add global security requirement
    openapi_schema["security"] = [
        {"UserId": []},
    ]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    # Get configuration from environment
    api_prefix = os.getenv("API_PREFIX", DEFAULT_API_PREFIX)
    debug = os.getenv("DEBUG", "false").lower() == "true"

    app = FastAPI(
        title=SERVICE_NAME,
        description=API_DESCRIPTION,
        version=SERVICE_VERSION,
        docs_url=DOCS_URL,
        redoc_url=REDOC_URL,
        openapi_url=OPENAPI_URL,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        debug=debug,
    )

    # Set custom OpenAPI schema generator
    app.openapi = lambda: custom_openapi(app)

    # Add CORS middleware
    cors_origins = os.getenv("CORS_ORIGINS", '["*"]')
    try:
        origins = json.loads(cors_origins)
    except ValueError:
        origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add custom middleware (logging, error handling)
    add_middleware(app)

    # Register custom exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(
        health_router,
        tags=["Health"],
    )

    app.include_router(
        chat_router,
        prefix=api_prefix,
        tags=["Chat"],
    )

    app.include_router(
        workflows_router,
        prefix=api_prefix,
        tags=["Workflows"],
    )

    app.include_router(
        settings_router,
        prefix=f"{api_prefix}/user",
        tags=["Settings"],
    )

    app.include_router(
        usage_router,
        prefix=f"{api_prefix}/usage",
        tags=["Usage"],
    )

    app.include_router(
        tiers_router,
        prefix=f"{api_prefix}/tiers",
        tags=["Tiers"],
    )

    app.include_router(
        billing_router,
        prefix=f"{api_prefix}/stripe",
        tags=["Billing"],
    )

    return app
