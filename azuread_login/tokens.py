from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import requests

from azuread_login.claims import decode_id_token, extract_user
from azuread_login.endpoints import encode_query, token_url
from azuread_login.errors import NetworkError, ProtocolError, StateError

# The core imposes no deadline on the exchange; this is the transport's own limit.
DEFAULT_TIMEOUT_SECONDS = 30

_log = logging.getLogger("azuread_login.tokens")


@dataclass(frozen=True)
class TokenAuthority:
    """What a bundle needs to refresh itself, copied out of the options."""

    base_url: str
    client_id: str
    login_policy: str
    redirect_uri: str
    scopes: tuple[str, ...]

    @classmethod
    def from_options(cls, options: Any) -> "TokenAuthority":
        return cls(
            base_url=options.base_url,
            client_id=options.client_id,
            login_policy=options.login_policy,
            redirect_uri=options.redirect_uri,
            scopes=tuple(options.scopes),
        )

    @property
    def token_url(self) -> str:
        return token_url(self, self.login_policy)


@dataclass(frozen=True)
class TokenBundle:
    access_token: str | None
    refresh_token: str | None = None
    expires_on: datetime | None = None
    id_token: str | None = None
    _authority: TokenAuthority | None = field(default=None, repr=False, compare=False)

    def refresh(self, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> "TokenBundle":
        """Trade ``refresh_token`` for a brand-new bundle.

        Raises:
            StateError: no refresh token (or no authority) is available.
            NetworkError, ProtocolError: the token endpoint call failed.
        """
        return refresh_tokens(self, timeout=timeout)

    def is_expired(self, *, leeway_seconds: float = 0) -> bool:
        if self.expires_on is None:
            return False
        return datetime.now(timezone.utc) + timedelta(seconds=leeway_seconds) >= self.expires_on

    def claims(self) -> dict[str, Any]:
        if not self.id_token:
            return {}
        return decode_id_token(self.id_token)

    def user(self) -> dict[str, Any]:
        return extract_user(self.claims())

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_on": self.expires_on.isoformat() if self.expires_on else None,
            "id_token": self.id_token,
        }


def _parse_expires_in(value: Any, now: datetime) -> datetime | None:
    try:
        return now + timedelta(seconds=int(str(value).strip()))
    except (ValueError, OverflowError):
        return None


def _string_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def execute_token_request(
    url: str,
    params: Mapping[str, Any],
    *,
    authority: TokenAuthority | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> TokenBundle:
    """POST to the token endpoint and normalize the answer into a bundle.

    The provider accepts the grant as a query string, so ``params`` travel
    percent-encoded in the URL and the body stays empty.
    """
    request_url = f"{url}?{encode_query(params)}"
    try:
        resp = requests.post(request_url, timeout=timeout)
    except requests.RequestException as e:
        # The request URL carries the code, so keep the transport message out.
        raise NetworkError(f"Token request to {url} failed ({type(e).__name__})") from e

    if resp.status_code != 200:
        raise ProtocolError(f"Unexpected response {resp.status_code}", status=resp.status_code)

    try:
        body = resp.json()
    except ValueError as e:
        raise ProtocolError("Token response is not valid JSON", status=resp.status_code, reason="malformed") from e
    if not isinstance(body, dict):
        raise ProtocolError("Token response is not a JSON object", status=resp.status_code, reason="malformed")

    access_token = body.get("access_token")
    if access_token is None:
        _log.warning("Token response from %s carried no access_token", url)

    return TokenBundle(
        access_token=access_token,
        refresh_token=_string_or_none(body.get("refresh_token")),
        expires_on=_parse_expires_in(body.get("expires_in"), datetime.now(timezone.utc)),
        id_token=_string_or_none(body.get("id_token")),
        _authority=authority,
    )


def exchange_code_for_tokens(
    *,
    options: Any,
    code: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> TokenBundle:
    authority = TokenAuthority.from_options(options)
    params = {
        "client_id": authority.client_id,
        "redirect_uri": authority.redirect_uri,
        "scope": " ".join(authority.scopes),
        "grant_type": "authorization_code",
        "code": code,
    }
    tokens = execute_token_request(authority.token_url, params, authority=authority, timeout=timeout)
    _log.info("Authorization code redeemed (client_id=%s)", authority.client_id)
    return tokens


def refresh_tokens(tokens: TokenBundle, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> TokenBundle:
    if tokens.refresh_token is None:
        raise StateError("No refresh_token available")
    authority = tokens._authority
    if authority is None:
        raise StateError("Token bundle carries no authority to refresh against")

    params = {
        "client_id": authority.client_id,
        "redirect_uri": authority.redirect_uri,
        "scope": " ".join(authority.scopes),
        "grant_type": "refresh_token",
        "refresh_token": tokens.refresh_token,
    }
    refreshed = execute_token_request(authority.token_url, params, authority=authority, timeout=timeout)
    _log.info("Access token refreshed (client_id=%s)", authority.client_id)
    return refreshed
