"""
Travel Accounts service.

Customer registration, password and federated login, and refresh-token
sessions for the travel booking backend.
"""
