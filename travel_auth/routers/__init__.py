"""
Travel Accounts API Routers.
"""

from travel_auth.routers.accounts import router as accounts_router

__all__ = ["accounts_router"]
