import json
import logging
import httpx
from typing import Optional, Dict, Any
from google.oauth2 import service_account, id_token
from google.auth import exceptions as google_auth_exceptions
import google.auth.transport.requests
from starlette.concurrency import run_in_threadpool
from ..configs import settings
from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class FirebaseService:
    """Firebase Authentication: ID token verification and custom claims."""

    ADMIN_SCOPES = [
        'https://www.googleapis.com/auth/identitytoolkit',
        'https://www.googleapis.com/auth/cloud-platform',
    ]
    IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/projects/{project_id}/accounts:update"
    _credentials = None

    @staticmethod
    def _load_service_account() -> Optional[service_account.Credentials]:
        """Build service account credentials from the FIREBASE_* environment variables."""
        project_id = settings.firebase_project_id
        private_key = settings.firebase_private_key
        client_email = settings.firebase_client_email

        if not (project_id and private_key and client_email):
            logger.warning("Firebase service account credentials are not configured")
            return None

        # Keys pasted into .env usually carry quotes and escaped newlines
        clean_private_key = private_key.strip('"').replace('\\n', '\n')

        service_account_info = {
            "type": "service_account",
            "project_id": project_id,
            "private_key_id": settings.firebase_private_key_id,
            "private_key": clean_private_key,
            "client_email": client_email,
            "client_id": settings.firebase_client_id,
            "token_uri": settings.firebase_token_uri,
        }
        try:
            return service_account.Credentials.from_service_account_info(
                service_account_info,
                scopes=FirebaseService.ADMIN_SCOPES
            )
        except ValueError as e:
            logger.error(f"Invalid Firebase service account: {e}")
            return None

    @staticmethod
    async def _get_access_token() -> Optional[str]:
        """OAuth2 access token for the Admin REST API, refreshed on every call."""
        if not FirebaseService._credentials:
            FirebaseService._credentials = FirebaseService._load_service_account()
            if not FirebaseService._credentials:
                return None

        request = google.auth.transport.requests.Request()
        try:
            await run_in_threadpool(FirebaseService._credentials.refresh, request)
        except google_auth_exceptions.GoogleAuthError as e:
            logger.error(f"Could not refresh Firebase access token: {e}")
            return None
        return FirebaseService._credentials.token

    @staticmethod
    async def verify_id_token(token: str) -> Dict[str, Any]:
        """
        Verify a Firebase ID token issued to the frontend.

        Args:
            token: The raw ID token from the Authorization header

        Returns:
            dict: Decoded claims, `uid` holds the Firebase user id

        Raises:
            AuthenticationError: If the token is invalid or expired
        """
        if not settings.firebase_project_id:
            raise AuthenticationError("Authentication is not configured")

        request = google.auth.transport.requests.Request()
        try:
            claims = await run_in_threadpool(
                id_token.verify_firebase_token,
                token,
                request,
                settings.firebase_project_id
            )
        except ValueError as e:
            # google-auth reports bad signatures, wrong audience and expiry as ValueError
            logger.info(f"Rejected Firebase ID token: {e}")
            if "expired" in str(e).lower():
                raise AuthenticationError("Token has expired. Please login again.") from e
            raise AuthenticationError("Invalid token. Please login again.") from e
        except google_auth_exceptions.GoogleAuthError as e:
            logger.error(f"Could not verify Firebase ID token: {e}")
            raise AuthenticationError("Authentication failed") from e

        if not claims or not claims.get("sub"):
            raise AuthenticationError("Invalid token. Please login again.")
        claims.setdefault("uid", claims["sub"])
        return claims

    @staticmethod
    async def set_custom_user_claims(uid: str, claims: Dict[str, Any]) -> bool:
        """
        Replace the custom claims of a Firebase user.

        Returns:
            bool: True if Firebase accepted the update
        """
        access_token = await FirebaseService._get_access_token()
        if not access_token:
            return False

        url = FirebaseService.IDENTITY_TOOLKIT_URL.format(project_id=settings.firebase_project_id)
        headers = {
            'Authorization': f'Bearer {access_token}',
            'Content-Type': 'application/json',
        }
        payload = {"localId": uid, "customAttributes": json.dumps(claims)}

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Error setting custom claims for {uid}: {e}")
            return False

        if response.status_code != 200:
            logger.error(f"Firebase rejected custom claims for {uid}: {response.status_code} {response.text}")
            return False

        logger.info(f"Custom claims set for user {uid}: {claims}")
        return True
