"""Application-wide constants and configuration defaults.

This module centralizes magic values, default configurations, and constants
that are used across the codebase to improve maintainability.
"""

# =============================================================================
# Service Identity
# =============================================================================
SERVICE_NAME = "Owaiken Gateway"
SERVICE_VERSION = "1.0.0"
DEFAULT_APP_TITLE = "Owaiken Chat"

# =============================================================================
# Identity Resolution
# =============================================================================
# The upstream auth layer forwards the resolved user id in this header.
DEFAULT_IDENTITY_HEADER = "X-User-ID"

# =============================================================================
# Tier Policy Defaults
# =============================================================================
TIER_STANDARD = "standard"
TIER_PRO = "pro"
TIER_ENTERPRISE = "enterprise"

DEFAULT_TIER_QUOTAS = {
    TIER_STANDARD: 100,
    TIER_PRO: 1000,
    TIER_ENTERPRISE: 10000,
}

DEFAULT_TIER_MODELS = {
    TIER_STANDARD: ["openai/gpt-3.5-turbo", "anthropic/claude-instant-1"],
    TIER_PRO: ["openai/gpt-3.5-turbo", "anthropic/claude-instant-1", "anthropic/claude-2"],
    TIER_ENTERPRISE: [
        "openai/gpt-3.5-turbo",
        "anthropic/claude-instant-1",
        "anthropic/claude-2",
        "openai/gpt-4",
    ],
}

DEFAULT_TIER_WORKFLOWS = {
    TIER_STANDARD: ["basic-chat", "simple-rag"],
    TIER_PRO: ["basic-chat", "simple-rag", "advanced-rag", "data-analysis"],
    TIER_ENTERPRISE: [
        "basic-chat",
        "simple-rag",
        "advanced-rag",
        "data-analysis",
        "custom-workflows",
    ],
}

# Percentage of quota at which a warning is logged
QUOTA_WARNING_THRESHOLD = 80.0

# =============================================================================
# Chat Defaults
# =============================================================================
DEFAULT_CHAT_MODEL = "openai/gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
CHAT_ROLES = ("user", "assistant", "system")

# =============================================================================
# Downstream Endpoints
# =============================================================================
DEFAULT_OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_N8N_BASE_URL = "http://localhost:5678"
N8N_WEBHOOK_PATH = "webhook"
DEFAULT_DOWNSTREAM_TIMEOUT_SECONDS = 60.0

# =============================================================================
# Database Pool Configuration
# =============================================================================
DEFAULT_DB_POOL_SIZE = 5
DEFAULT_DB_MAX_OVERFLOW = 10
DEFAULT_DB_POOL_TIMEOUT = 30
DEFAULT_DB_POOL_RECYCLE = 1800  # 30 minutes in seconds
DEFAULT_DB_RETRY_ATTEMPTS = 3

# =============================================================================
# Billing (Stripe)
# =============================================================================
STRIPE_SIGNATURE_HEADER = "Stripe-Signature"
STRIPE_SIGNATURE_TOLERANCE_SECONDS = 300

EVENT_CHECKOUT_COMPLETED = "checkout.session.completed"
EVENT_INVOICE_PAID = "invoice.payment_succeeded"
EVENT_SUBSCRIPTION_UPDATED = "customer.subscription.updated"
EVENT_SUBSCRIPTION_DELETED = "customer.subscription.deleted"

# =============================================================================
# Usage Summary
# =============================================================================
RECENT_USAGE_EVENTS_LIMIT = 5

# =============================================================================
# API Configuration
# =============================================================================
DOCS_URL = "/docs"
REDOC_URL = "/redoc"
OPENAPI_URL = "/openapi.json"
DEFAULT_API_PREFIX = "/api"
