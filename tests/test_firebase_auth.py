"""Unit tests for the Firebase identity verifier (Admin SDK patched out)."""

import time
import pytest
from unittest.mock import MagicMock, patch

from firebase_admin import auth

from common.auth.exceptions import InvalidTokenError
from common.auth.firebase_auth import FirebaseAuth


@pytest.fixture
def firebase_app():
    return MagicMock(name="firebase-app")


@pytest.fixture
def verifier(firebase_app):
    return FirebaseAuth(app=firebase_app, timeout_seconds=1.0)


class TestVerify:
    @pytest.mark.asyncio
    async def test_maps_claims(self, verifier, firebase_app):
        decoded = {
            "uid": "uid-1",
            "email": "jane@example.com",
            "email_verified": True,
            "name": "Jane",
            "picture": "https://example.com/p.png",
            "phone_number": "+15550001",
        }
        with patch("common.auth.firebase_auth.auth.verify_id_token", return_value=decoded) as verify:
            identity = await verifier.verify("id-token")

        verify.assert_called_once_with("id-token", app=firebase_app, check_revoked=False)
        assert identity.uid == "uid-1"
        assert identity.email == "jane@example.com"
        assert identity.name == "Jane"
        assert identity.picture == "https://example.com/p.png"
        assert identity.phone_number == "+15550001"
        assert identity.email_verified is True

    @pytest.mark.asyncio
    async def test_alternate_claim_names(self, verifier):
        decoded = {
            "sub": "uid-2",
            "email": "j@example.com",
            "displayName": "J",
            "photoURL": "https://example.com/j.png",
            "phoneNumber": "+15550002",
        }
        with patch("common.auth.firebase_auth.auth.verify_id_token", return_value=decoded):
            identity = await verifier.verify("id-token")

        assert identity.uid == "uid-2"
        assert identity.name == "J"
        assert identity.picture == "https://example.com/j.png"
        assert identity.phone_number == "+15550002"
        assert identity.email_verified is False

    @pytest.mark.asyncio
    async def test_invalid_token(self, verifier):
        error = auth.InvalidIdTokenError("bad signature")
        with patch("common.auth.firebase_auth.auth.verify_id_token", side_effect=error):
            with pytest.raises(InvalidTokenError):
                await verifier.verify("id-token")

    @pytest.mark.asyncio
    async def test_malformed_token(self, verifier):
        with patch("common.auth.firebase_auth.auth.verify_id_token", side_effect=ValueError("malformed")):
            with pytest.raises(InvalidTokenError):
                await verifier.verify("id-token")

    @pytest.mark.asyncio
    async def test_empty_token(self, verifier):
        with patch("common.auth.firebase_auth.auth.verify_id_token") as verify:
            with pytest.raises(InvalidTokenError):
                await verifier.verify("")

        verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_timeout(self, firebase_app):
        slow_verifier = FirebaseAuth(app=firebase_app, timeout_seconds=0.05)

        def slow(*args, **kwargs):
            time.sleep(0.3)
            return {"uid": "late"}

        with patch("common.auth.firebase_auth.auth.verify_id_token", side_effect=slow):
            with pytest.raises(InvalidTokenError):
                await slow_verifier.verify("id-token")

    @pytest.mark.asyncio
    async def test_missing_uid(self, verifier):
        with patch("common.auth.firebase_auth.auth.verify_id_token", return_value={"email": "x@example.com"}):
            with pytest.raises(InvalidTokenError):
                await verifier.verify("id-token")


class TestAppInitialization:
    def test_reuses_named_app(self):
        existing = MagicMock(name="existing-app")
        with patch("common.auth.firebase_auth.firebase_admin.get_app", return_value=existing) as get_app, \
                patch("common.auth.firebase_auth.firebase_admin.initialize_app") as initialize_app:
            verifier = FirebaseAuth(credentials_dict={"type": "service_account"}, app_name="accounts")

        get_app.assert_called_once_with("accounts")
        initialize_app.assert_not_called()
        assert verifier._app is existing

    def test_initializes_named_app_with_credentials(self):
        with patch("common.auth.firebase_auth.firebase_admin.get_app", side_effect=ValueError), \
                patch("common.auth.firebase_auth.credentials.Certificate") as certificate, \
                patch("common.auth.firebase_auth.firebase_admin.initialize_app") as initialize_app:
            FirebaseAuth(credentials_path="/secrets/sa.json", project_id="travel-prod", app_name="accounts")

        certificate.assert_called_once_with("/secrets/sa.json")
        initialize_app.assert_called_once_with(
            certificate.return_value, {"projectId": "travel-prod"}, name="accounts"
        )
