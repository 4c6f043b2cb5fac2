"""
Domain errors raised by the auth providers.

All of them subclass ValueError so callers that only care about
"the credential was rejected" can keep catching ValueError. Route code
translates them into HTTP exceptions and collapses the messages, so the
distinctions below never leak to clients.
"""


class TokenError(ValueError):
    """A bearer token could not be accepted."""


class InvalidTokenError(TokenError):
    """Token is malformed, has a bad signature, or has the wrong type."""


class TokenExpiredError(TokenError):
    """Token signature is valid but the token is past its expiry."""


class InvalidCredentialsError(ValueError):
    """Email/password pair did not match an account."""


class NoPasswordSetError(InvalidCredentialsError):
    """Account exists but was created through federated login only."""
