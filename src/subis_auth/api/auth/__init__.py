"""
Auth API package.

Contains the registration, verification and sign-in routes.
"""

from subis_auth.api.auth.routes import router

__all__ = ["router"]
