"""
Portcullis Backend - Shared Messages and Limits
================================================

Client-facing strings live here so routes, services and tests agree on them.
"""

# ── Error messages ────────────────────────────────────────────────────────
INVALID_CREDENTIALS = "Invalid email or password"
USER_NOT_FOUND = "User not found"
EMAIL_ALREADY_EXISTS = "Email already exists"
INVALID_ID = "Invalid ID"
INVALID_TOKEN = "Invalid or expired token"
MISSING_AUTH_HEADER = "Missing or invalid authorization header"
MISSING_OAUTH_CODE = "No authorization code provided"
OAUTH_NOT_CONFIGURED = "Google OAuth is not configured"
TOO_MANY_REQUESTS = "Too many requests, please try again later"
UNEXPECTED_ERROR = "An unexpected error occurred"
VALIDATION_ERRORS = "Validation Errors"

# ── Success messages ──────────────────────────────────────────────────────
USER_CREATED = "User created successfully"
USER_UPDATED = "User updated successfully"
USER_DELETED = "User deleted successfully"
USERS_RETRIEVED = "Users retrieved successfully"
USER_RETRIEVED = "User retrieved successfully"
CURRENT_USER_RETRIEVED = "Current user retrieved successfully"
AUTH_SUCCESS = "Authentication successful"

# ── Pagination ────────────────────────────────────────────────────────────
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
