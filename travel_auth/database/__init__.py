"""
Accounts service database utilities.
"""

from travel_auth.database.collections import get_customers_collection

__all__ = ["get_customers_collection"]
