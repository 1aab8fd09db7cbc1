"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_PHONE_LENGTH = 20
MAX_NAME_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 255
MAX_PERMISSION_NAME_LENGTH = 100
MAX_CATEGORY_LENGTH = 50
MAX_INVITATION_TOKEN_LENGTH = 64

# Role names
MIN_ROLE_NAME_LENGTH = 2
MAX_ROLE_NAME_LENGTH = 20
ROLE_NAME_PATTERN = r"^[a-zA-Z0-9\s\-_]+$"

# Staff onboarding
DEFAULT_STAFF_TITLE = "Staff"
MAX_STAFF_TITLE_LENGTH = 100
INVITATION_TOKEN_BYTES = 32
INVITATION_EXPIRE_HOURS = 72

# Password requirements
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
BCRYPT_ROUNDS = 12

# Permission cache
DEFAULT_PERMISSION_CACHE_TTL_SECONDS = 300  # 5 minutes

# Grants
MAX_PERMISSIONS_PER_REQUEST = 100

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 32

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"

# Platform roles
PLATFORM_ADMIN_ROLE = "Admin"

# Audit log
MAX_AUDIT_ACTION_LENGTH = 50
MAX_RESOURCE_TYPE_LENGTH = 50
DEFAULT_AUDIT_LIMIT = 50
MAX_AUDIT_LIMIT = 200
