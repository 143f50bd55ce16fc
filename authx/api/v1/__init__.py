"""
API v1 package.

Contains versioned API routes for the user account API.
"""

from authx.api.v1.routes import router

__all__ = ["router"]
