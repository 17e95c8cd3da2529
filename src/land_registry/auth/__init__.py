"""Bearer-token authentication that resolves a caller to a party identity."""

from land_registry.auth.middleware import AuthMiddleware, require_party
from land_registry.auth.provider import AuthProvider, MockAuthProvider

__all__ = ["AuthMiddleware", "AuthProvider", "MockAuthProvider", "require_party"]
