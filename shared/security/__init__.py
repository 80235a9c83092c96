from .jwt_handler import create_access_token, user_id_from_claims, verify_access_token
from .api_key import verify_api_key
from .dependencies import (
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    CurrentUser,
    get_current_user,
    require_admin,
    verify_internal_api_key,
)
from .rate_limiter import limiter, user_id_or_ip

__all__ = [
    "create_access_token",
    "verify_access_token",
    "user_id_from_claims",
    "verify_api_key",
    "ROLE_ADMIN",
    "ROLE_CUSTOMER",
    "CurrentUser",
    "get_current_user",
    "require_admin",
    "verify_internal_api_key",
    "limiter",
    "user_id_or_ip"
]
