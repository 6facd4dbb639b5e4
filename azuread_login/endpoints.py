from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import parse_qsl, quote, urlencode, urlsplit

DEFAULT_NONCE = "defaultNonce"


def base_authority_url(tenant: str, is_b2c: bool = True) -> str:
    if is_b2c:
        return f"https://{tenant}.b2clogin.com/{tenant}.onmicrosoft.com"
    return f"https://login.microsoftonline.com/{tenant}"


def encode_query(params: Mapping[str, Any]) -> str:
    """Percent-encode ``params`` in insertion order, dropping ``None`` values."""
    present = [(str(k), str(v)) for k, v in params.items() if v is not None]
    return urlencode(present, quote_via=quote, safe="")


def authorize_url(options: Any, policy: str | None) -> str:
    params = {
        "p": policy if options.is_b2c else None,
        "client_id": options.client_id,
        "nonce": DEFAULT_NONCE,
        "redirect_uri": options.redirect_uri,
        "scope": "openid",
        "response_type": "code",
        "prompt": "login",
    }
    return f"{options.base_url}/oauth2/v2.0/authorize?{encode_query(params)}"


def logout_url(options: Any) -> str:
    params = encode_query({"post_logout_redirect_uri": options.redirect_uri})
    return f"{options.base_url}/oauth2/v2.0/logout?{params}"


def token_url(source: Any, policy: str) -> str:
    # ``source`` is anything exposing ``base_url``: options or a token authority.
    return f"{source.base_url}/{policy}/oauth2/v2.0/token"


def uris_match(a: Any, b: Any) -> bool:
    """Loose endpoint identity: host and path only, case-insensitive.

    Scheme, port and query string are ignored so that a redirect carrying
    ``code``/``state`` still matches the configured redirect URI. Malformed
    input on either side yields ``False``.
    """
    try:
        left = urlsplit(a)
        right = urlsplit(b)
        return (
            (left.hostname or "").strip().lower() == (right.hostname or "").strip().lower()
            and left.path.strip().lower() == right.path.strip().lower()
        )
    except (AttributeError, TypeError, ValueError):
        return False


def query_parameters(url: str) -> dict[str, str]:
    """Query parameters of ``url``; the last occurrence of a repeated key wins."""
    return dict(parse_qsl(urlsplit(url).query, keep_blank_values=True))
