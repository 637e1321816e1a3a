"""
FastAPI service for the Owaiken gateway.

This service provides a REST API for:
- Chat completions proxied to the model provider
- Automation workflow executions (managed or enterprise custom endpoint)
- Tier-based entitlement checks and usage metering
- Stripe subscription synchronization

Usage:
    uvicorn src.main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
import os
import sys
from pathlib import Path

# Add project root to Python path for direct execution
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load environment variables before importing anything else
load_dotenv()

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Import and create the FastAPI app
from src.api import create_app
from src.constants import SERVICE_NAME, SERVICE_VERSION

app = create_app()

logger.info(f"{SERVICE_NAME} v{SERVICE_VERSION} initialized")
logger.info("API documentation available at /docs and /redoc")


def main() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    reload = os.getenv("DEBUG", "false").lower() == "true"

    logger.info(f"Starting server on {host}:{port}")

    uvicorn.run(
        "src.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
