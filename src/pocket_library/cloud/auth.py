"""Firebase email/password authentication over the Identity Toolkit REST API.

The repository only needs ``current_user_id()``; the Firestore client also
pulls a bearer token from ``id_token()``. The signed-in session can be kept
in a small JSON file so it survives restarts.
"""

import json
import logging
import time
from pathlib import Path
from typing import Optional, Protocol

import httpx

from pocket_library.errors import AuthError, ValidationError

logger = logging.getLogger(__name__)


class AuthSession(Protocol):
    """Anything that can tell who is signed in."""

    def current_user_id(self) -> Optional[str]:
        ...


class FirebaseAuth:
    """Sign up, log in and log out against Firebase Auth."""

    IDENTITY_URL = "https://identitytoolkit.googleapis.com/v1/"
    TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
    # Refresh a little before Firebase says the token expires
    EXPIRY_MARGIN_SECONDS = 60

    def __init__(self, api_key: str, session_path: str | Path | None = None,
                 timeout: float = 30.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.api_key = api_key
        self.session_path = Path(session_path) if session_path else None
        self.client = httpx.Client(timeout=timeout, transport=transport)
        self._user_id: Optional[str] = None
        self._id_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._expires_at: float = 0.0
        self._load_session()

    # ── Public API ──────────────────────────────────────────────

    def current_user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def is_signed_in(self) -> bool:
        return self._user_id is not None

    def sign_up(self, email: str, password: str) -> str:
        """Create a Firebase account and sign in. Returns the user id."""
        return self._authenticate("accounts:signUp", email, password)

    def login(self, email: str, password: str) -> str:
        """Sign in with email and password. Returns the user id."""
        return self._authenticate(
            "accounts:signInWithPassword", email, password
        )

    def logout(self):
        self._user_id = None
        self._id_token = None
        self._refresh_token = None
        self._expires_at = 0.0
        if self.session_path and self.session_path.exists():
            try:
                self.session_path.unlink()
            except OSError as e:
                logger.warning(f"Could not remove session file: {e}")

    def id_token(self) -> Optional[str]:
        """A valid ID token for the signed-in user, refreshed if stale."""
        if not self._user_id:
            return None
        if time.time() >= self._expires_at - self.EXPIRY_MARGIN_SECONDS:
            self.refresh()
        return self._id_token

    def refresh(self):
        """Exchange the refresh token for a new ID token."""
        if not self._refresh_token:
            raise AuthError("NO_REFRESH_TOKEN", "Not signed in")
        data = self._post(
            self.TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "refresh_token": self._refresh_token,
            },
        )
        self._user_id = data.get("user_id") or self._user_id
        self._id_token = data.get("id_token")
        self._refresh_token = data.get("refresh_token", self._refresh_token)
        self._expires_at = time.time() + int(data.get("expires_in", 3600))
        self._save_session()

    def close(self):
        self.client.close()

    # ── Helpers ─────────────────────────────────────────────────

    def _authenticate(self, endpoint: str, email: str, password: str) -> str:
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Email and password are required")
        data = self._post(
            self.IDENTITY_URL + endpoint,
            json={
                "email": email,
                "password": password,
                "returnSecureToken": True,
            },
        )
        user_id = data.get("localId")
        if not user_id:
            raise AuthError("MISSING_USER_ID", "Sign-in returned no user id")
        self._user_id = user_id
        self._id_token = data.get("idToken")
        self._refresh_token = data.get("refreshToken")
        self._expires_at = time.time() + int(data.get("expiresIn", 3600))
        self._save_session()
        logger.info(f"Signed in as {user_id}")
        return user_id

    def _post(self, url: str, **kwargs) -> dict:
        try:
            response = self.client.post(
                url, params={"key": self.api_key}, **kwargs
            )
        except httpx.HTTPError as e:
            raise AuthError("NETWORK_ERROR", f"Auth request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.is_success:
            message = ""
            if isinstance(data, dict):
                message = (data.get("error") or {}).get("message", "")
            code = message.split(" : ", 1)[0] if message else (
                f"HTTP_{response.status_code}"
            )
            logger.warning(f"Firebase auth rejected request: {code}")
            raise AuthError(code, message or code)

        if not isinstance(data, dict):
            raise AuthError("MALFORMED_RESPONSE", "Unexpected auth response")
        return data

    def _load_session(self):
        if not self.session_path or not self.session_path.exists():
            return
        try:
            data = json.loads(self.session_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return
        if not isinstance(data, dict):
            return
        self._user_id = data.get("user_id")
        self._id_token = data.get("id_token")
        self._refresh_token = data.get("refresh_token")
        self._expires_at = float(data.get("expires_at", 0))

    def _save_session(self):
        if not self.session_path:
            return
        self.session_path.parent.mkdir(parents=True, exist_ok=True)
        self.session_path.write_text(
            json.dumps({
                "user_id": self._user_id,
                "id_token": self._id_token,
                "refresh_token": self._refresh_token,
                "expires_at": self._expires_at,
            }, indent=2),
            encoding="utf-8",
        )
