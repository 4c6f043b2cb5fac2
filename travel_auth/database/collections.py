"""
Accounts service collection accessors.

Uses the centralized MongoDB singleton from common.database.
"""

from common.database import get_main_database
from travel_auth.config import settings


def get_customers_collection():
    """Get the customers collection from main database."""
    return get_main_database().get_collection(settings.CUSTOMERS_COLLECTION)
