"""Health check API endpoint."""

import logging
from datetime import datetime, timezone
from typing import Dict, Any

from fastapi import APIRouter

from src.constants import DOCS_URL, SERVICE_NAME, SERVICE_VERSION

from ..schemas.common import HealthStatus

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "/health",
    response_model=HealthStatus,
    operation_id="getHealth",
    summary="Check service health",
)
async def health_check():
    """
    Check the health of all service components.

    **No authentication required**.

    Returns status of:
    - Database connection
    - Tier policy table
    """
    components: Dict[str, Dict[str, Any]] = {}

    # Check database
    try:
        from src.db.connection import db
        if not db.config.enabled:
            components["database"] = {
                "status": "disabled",
                "message": "Database disabled"
            }
        elif await db.test_connection(timeout=5.0):
            components["database"] = {
                "status": "healthy",
                "message": "Connected"
            }
        else:
            components["database"] = {
                "status": "unhealthy",
                "message": "Connection test failed"
            }
    except Exception as e:
        components["database"] = {
            "status": "unhealthy",
            "message": str(e)
        }

    # Check tier policy table
    try:
        from src.core.usage import get_tier_policy_table
        table = get_tier_policy_table()
        components["tier_policy"] = {
            "status": "healthy",
            "tiers": [policy.tier.value for policy in table.tiers()],
        }
    except Exception as e:
        components["tier_policy"] = {
            "status": "unhealthy",
            "message": str(e)
        }

    # Determine overall status
    unhealthy = any(
        c.get("status") == "unhealthy"
        for c in components.values()
    )

    return HealthStatus(
        status="unhealthy" if unhealthy else "healthy",
        version=SERVICE_VERSION,
        timestamp=datetime.now(timezone.utc),
        components=components,
    )


@router.get(
    "/",
    response_model=Dict[str, str],
    operation_id="getRoot",
    summary="Get API information",
)
async def root():
    """
    Root endpoint with API information and documentation links.

    **No authentication required**.
    """
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "docs": DOCS_URL,
        "health": "/health",
    }
