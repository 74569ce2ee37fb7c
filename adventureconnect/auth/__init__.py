"""
Identity & Access Module

Registration and login for travelers and providers, bearer token issuing
and verification, and the role gate used by every protected endpoint.

Key Components:
- utils.py: password hashing (passlib/bcrypt) and JWT signing (PyJWT)
- service.py: UserService with register/login/update
- dependencies.py: get_current_user and the require_role gate
- router.py: /auth endpoints
"""

from .router import router
from .service import UserService
from .dependencies import (
    get_current_user, get_current_provider, require_role, require_provider,
)

__all__ = [
    "router",
    "UserService",
    "get_current_user",
    "get_current_provider",
    "require_role",
    "require_provider",
]
