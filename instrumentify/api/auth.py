"""
Handles the OAuth authorization-code flow with PKCE against the Spotify
accounts service.

Only the parts needed to obtain a bearer token are implemented: there is no
token refresh, expiry tracking, or revocation.
"""

import base64
import hashlib
import logging
import secrets
import string
from typing import Any, Optional
from urllib.parse import parse_qs, urlencode, urlparse

import aiohttp

from instrumentify.exceptions import AuthenticationError

log = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
DEFAULT_SCOPE = "playlist-read-private"

_VERIFIER_ALPHABET = string.ascii_letters + string.digits


def generate_code_verifier(length: int = 64) -> str:
    """Returns a random alphanumeric PKCE code verifier (43-128 characters)."""
    if not 43 <= length <= 128:
        raise ValueError("PKCE code verifier length must be between 43 and 128.")
    return "".join(secrets.choice(_VERIFIER_ALPHABET) for _ in range(length))


def code_challenge(verifier: str) -> str:
    """Derives the S256 challenge: URL-safe base64 of SHA-256, padding stripped."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def extract_authorization_code(redirected: str) -> Optional[str]:
    """
    Pulls the ``code`` parameter out of a redirect URL. A bare code (no URL
    syntax) is returned unchanged.
    """
    redirected = redirected.strip()
    if not redirected:
        return None
    if "://" not in redirected and "?" not in redirected:
        return redirected
    params = parse_qs(urlparse(redirected).query)
    if "error" in params:
        raise AuthenticationError(f"Authorization was denied: {params['error'][0]}")
    codes = params.get("code")
    return codes[0] if codes else None


class SpotifyAuthenticator:
    """
    Drives one PKCE login: builds the authorize URL, then exchanges the
    returned code for an access token.
    """

    def __init__(
        self, client_id: str, redirect_uri: str, scope: str = DEFAULT_SCOPE
    ):
        """
        Args:
            client_id: Application client ID from the Spotify developer dashboard.
            redirect_uri: Redirect URI registered for that application.
            scope: Space-separated scopes to request.
        """
        if not client_id:
            raise AuthenticationError(
                "No Spotify client ID configured. Run 'instrumentify init' first."
            )
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.code_verifier = generate_code_verifier()

    def build_authorize_url(self) -> str:
        """Returns the URL the user must visit to grant access."""
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "code_challenge_method": "S256",
            "code_challenge": code_challenge(self.code_verifier),
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(
        self, code: str, session: Optional[aiohttp.ClientSession] = None
    ) -> str:
        """
        Exchanges an authorization code for an access token.

        Returns:
            The bearer access token.

        Raises:
            AuthenticationError: If the token endpoint rejects the code.
        """
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "code_verifier": self.code_verifier,
        }
        log.debug("Exchanging authorization code for an access token...")

        owns_session = session is None
        if owns_session:
            session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30))
        try:
            async with session.post(TOKEN_URL, data=form) as response:
                payload: dict[str, Any] = await response.json(content_type=None)
                if response.status != 200:
                    reason = payload.get("error_description") or payload.get(
                        "error", f"HTTP {response.status}"
                    )
                    raise AuthenticationError(f"Token exchange failed: {reason}")
        except (aiohttp.ClientError, ValueError) as e:
            raise AuthenticationError(f"Token exchange failed: {e}") from e
        finally:
            if owns_session:
                await session.close()

        token = payload.get("access_token")
        if not token:
            raise AuthenticationError("Token endpoint returned no access token.")
        log.info("[green]✓ Obtained Spotify access token.[/green]")
        return token
