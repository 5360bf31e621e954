"""Security configuration constants for the LINE Content Studio API.

This module centralizes:
- Sensitive keys that should be sanitized from logs
- Which error response fields may be exposed per environment
"""

# Keys are matched case-insensitively as substrings, so "openai_api_key"
# is caught by "api_key".
SENSITIVE_KEYS: set[str] = {
    # Credentials for upstream services
    "secret",
    "token",
    "authorization",
    "api_key",
    "x-api-key",
    "x-subscription-token",
    "bearer",
    "password",
    "cookie",
    "set-cookie",
    # Contact details that may appear in company settings
    "email",
    "phone",
    "address",
}

# Production-only error response fields
PRODUCTION_ERROR_FIELDS: set[str] = {
    "correlation_id",
    "type",
}

# Development error response fields (additional fields allowed in development)
DEVELOPMENT_ERROR_FIELDS: set[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Get allowed error response fields based on environment.

    Args:
        environment: The application environment (production, development, etc.)

    Returns:
        Set of allowed field names for error responses
    """
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS.copy()
    else:
        return DEVELOPMENT_ERROR_FIELDS.copy()


def is_sensitive_key(key: str) -> bool:
    """Check if a key should be considered sensitive and redacted."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
