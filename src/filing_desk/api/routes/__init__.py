"""API route modules."""

from filing_desk.api.routes.contacts import router as contacts_router
from filing_desk.api.routes.correspondence import router as correspondence_router
from filing_desk.api.routes.health import router as health_router

__all__ = [
    "contacts_router",
    "correspondence_router",
    "health_router",
]
