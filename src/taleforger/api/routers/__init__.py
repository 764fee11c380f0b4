"""API routers for different endpoint groups.

Routers:
- auth: Registration, login and profile
- health: Root message and health check
- stories: Story generation and management
"""

from .auth import router as auth_router
from .health import router as health_router
from .stories import router as stories_router

__all__ = [
    "auth_router",
    "health_router",
    "stories_router",
]
