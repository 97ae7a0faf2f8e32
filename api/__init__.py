"""
API module - Notification Gateway routes and HTTP plumbing.

Includes:
- gateway.py: POST /notify, GET /status
- security.py: bearer token check
- errors.py: JSON error bodies
"""

from api.errors import error_response, install_error_handlers
from api.gateway import router as gateway_router
from api.security import check_bearer_token, require_bearer_token

__all__ = [
    "gateway_router",
    "check_bearer_token",
    "require_bearer_token",
    "error_response",
    "install_error_handlers",
]
