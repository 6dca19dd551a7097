"""Security configuration constants for the intake service.

This module centralizes security-related configuration including:
- Sensitive keys that should be sanitized from logs
- Error handling security settings
"""

# Keys matched case-insensitively as substrings; any log field whose name
# contains one of these is replaced with "[REDACTED]".
SENSITIVE_KEYS: set[str] = {
    # Authentication & Authorization
    "password",
    "secret",
    "token",
    "authorization",
    "api_key",
    "jwt",
    "session_id",
    "bearer",
    "cookie",
    "x-api-key",
    # Patient identifiers
    "phone",
    "mobile",
    "email",
    "ssn",
    "address",
    "dob",
    # Clinical payload
    "content",
    "patient_data",
    "clinical",
}

# Production-only error response fields
# In production, error responses should only contain these fields to
# prevent information leakage
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
    """Check if a key should be considered sensitive and redacted.

    Args:
        key: The key name to check

    Returns:
        True if the key should be redacted, False otherwise
    """
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
