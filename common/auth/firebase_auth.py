"""
Firebase Admin SDK identity verifier.

Verifies Firebase ID tokens presented by clients that signed in with Google
or any other Firebase provider. The Admin SDK app is created once, under its
own name, when the verifier is constructed; nothing relies on the SDK's
global default app.

Example:
    verifier = FirebaseAuth(credentials_path="path/to/serviceAccount.json")

    identity = await verifier.verify(id_token)
    print(identity.uid, identity.email)
"""

import asyncio
import logging
from typing import Dict, Any, Optional

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from common.auth.base import FederatedIdentity, IdentityVerifier
from common.auth.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "identity-verifier"


class FirebaseAuth(IdentityVerifier):
    """
    Firebase ID token verifier.

    The SDK call is blocking and may fetch Google's public keys, so it runs
    in a worker thread bounded by ``timeout_seconds``.
    """

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        credentials_dict: Optional[Dict[str, Any]] = None,
        project_id: Optional[str] = None,
        timeout_seconds: float = 5.0,
        check_revoked: bool = False,
        app_name: str = DEFAULT_APP_NAME,
        app: Optional[firebase_admin.App] = None,
    ):
        """
        Initialize the Firebase verifier.

        Args:
            credentials_path: Path to service account JSON file
            credentials_dict: Service account credentials as dict (alternative to path)
            project_id: Firebase project ID (optional, can be inferred from credentials)
            timeout_seconds: Upper bound for a single verification call
            check_revoked: Also ask Firebase whether the token was revoked
            app_name: Name of the Admin SDK app owned by this verifier
            app: Already initialized Admin SDK app (skips initialization)
        """
        self._timeout = timeout_seconds
        self._check_revoked = check_revoked
        self._app = app or self._init_app(
            app_name, credentials_path, credentials_dict, project_id
        )

    @staticmethod
    def _init_app(
        app_name: str,
        credentials_path: Optional[str],
        credentials_dict: Optional[Dict[str, Any]],
        project_id: Optional[str],
    ) -> firebase_admin.App:
        try:
            return firebase_admin.get_app(app_name)
        except ValueError:
            pass

        if credentials_path:
            cred = credentials.Certificate(credentials_path)
        elif credentials_dict:
            cred = credentials.Certificate(credentials_dict)
        else:
            # Use default credentials (for GCP environments)
            cred = credentials.ApplicationDefault()

        options = {}
        if project_id:
            options["projectId"] = project_id

        logger.info(f"Initializing Firebase Admin app '{app_name}'")
        return firebase_admin.initialize_app(cred, options, name=app_name)

    def _verify_sync(self, id_token: str) -> Dict[str, Any]:
        return auth.verify_id_token(
            id_token, app=self._app, check_revoked=self._check_revoked
        )

    async def verify(self, id_token: str) -> FederatedIdentity:
        """Verify a Firebase ID token and map its claims."""
        if not id_token:
            raise InvalidTokenError("Token is empty")

        try:
            decoded = await asyncio.wait_for(
                asyncio.to_thread(self._verify_sync, id_token),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Firebase token verification timed out after {self._timeout}s")
            raise InvalidTokenError("Token verification timed out")
        except auth.RevokedIdTokenError:
            raise InvalidTokenError("Token has been revoked")
        except auth.ExpiredIdTokenError:
            raise InvalidTokenError("Token has expired")
        except auth.InvalidIdTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")
        except (ValueError, FirebaseError) as e:
            raise InvalidTokenError(f"Token verification failed: {e}")

        uid = decoded.get("uid") or decoded.get("sub")
        if not uid:
            raise InvalidTokenError("Token missing uid")

        return FederatedIdentity(
            uid=uid,
            email=decoded.get("email"),
            name=decoded.get("name") or decoded.get("displayName"),
            picture=decoded.get("picture") or decoded.get("photoURL"),
            phone_number=decoded.get("phone_number") or decoded.get("phoneNumber"),
            email_verified=bool(decoded.get("email_verified", False)),
        )
