"""
Abstract federated identity verifier interface.

A verifier checks an identity token minted by an external provider and
returns the decoded claims the application needs. Cryptographic checks are
entirely the provider's business.

Example:
    from common.auth import IdentityVerifier, FirebaseAuth

    def get_identity_verifier(settings) -> IdentityVerifier:
        return FirebaseAuth(credentials_path=settings.FIREBASE_CREDENTIALS_PATH)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FederatedIdentity:
    """Claims taken from a verified external identity token."""

    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    phone_number: Optional[str] = None
    email_verified: bool = False


class IdentityVerifier(ABC):
    """
    Verifies identity tokens issued by an external provider.

    Implementations must raise InvalidTokenError for every rejection,
    including provider timeouts.
    """

    @abstractmethod
    async def verify(self, id_token: str) -> FederatedIdentity:
        """
        Verify an identity token.

        Args:
            id_token: Raw token presented by the client

        Returns:
            The decoded identity

        Raises:
            InvalidTokenError: If the token is invalid, expired, revoked,
                or the provider did not answer in time
        """
        pass
