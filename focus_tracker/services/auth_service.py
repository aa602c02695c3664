import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

import httpx
from jose import JWTError, jwt

from focus_tracker.config import Settings
from focus_tracker.exceptions import UpstreamProviderError
from focus_tracker.schemas.auth import AuthenticatedUser

logger = logging.getLogger(__name__)


def build_authorize_url(settings: Settings) -> str:
    """GitHub authorize URL the client should redirect the user to."""
    return f"{settings.GITHUB_AUTHORIZE_URL}?{urlencode({'client_id': settings.GITHUB_CLIENT_ID})}"


def _read_payload(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError:
        return {"message": response.text}
    if not isinstance(payload, dict):
        return {"message": payload}
    return payload


async def exchange_code(
    code: str, settings: Settings, http_client: httpx.AsyncClient
) -> str:
    """Trade an OAuth authorization code for a GitHub access token."""
    resp = await http_client.post(
        settings.GITHUB_ACCESS_TOKEN_URL,
        json={
            "client_id": settings.GITHUB_CLIENT_ID,
            "client_secret": settings.GITHUB_CLIENT_SECRET,
            "code": code,
        },
        headers={"Accept": "application/json"},
    )
    payload = _read_payload(resp)

    # GitHub reports bad or expired codes with a 200 and an "error" key
    if resp.status_code >= 400 or "error" in payload or "access_token" not in payload:
        logger.warning("GitHub code exchange failed (%d): %s", resp.status_code, payload)
        raise UpstreamProviderError(payload, resp.status_code)

    return payload["access_token"]


async def fetch_profile(access_token: str, settings: Settings, http_client: httpx.AsyncClient) -> dict:
    resp = await http_client.get(
        settings.GITHUB_USER_URL,
        headers={
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
        },
    )
    payload = _read_payload(resp)
    if resp.status_code >= 400:
        logger.warning("GitHub profile fetch failed (%d): %s", resp.status_code, payload)
        raise UpstreamProviderError(payload, resp.status_code)
    return payload


async def complete_login(
    code: str,
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> dict:
    """Run the OAuth callback: exchange the code, read the profile, issue a session token.

    Raises ``UpstreamProviderError`` when GitHub rejects either call and lets
    ``httpx.HTTPError`` through for transport failures.
    """
    should_close = False
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=10.0)
        should_close = True

    try:
        access_token = await exchange_code(code, settings, http_client)
        profile = await fetch_profile(access_token, settings, http_client)
    finally:
        if should_close:
            await http_client.aclose()

    user_id = profile["node_id"]
    return {
        "id": user_id,
        "avatar_url": profile.get("avatar_url"),
        "name": profile.get("name"),
        "token": issue_token(user_id, settings),
    }


def issue_token(user_id: str, settings: Settings) -> str:
    """Issue a signed session token carrying the user id."""
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRES_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, settings: Settings) -> AuthenticatedUser:
    """Verify signature and expiry of a session token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise ValueError("Invalid or expired token")

    user_id = payload.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise ValueError("Token has no user id")

    return AuthenticatedUser(id=user_id)
