from __future__ import annotations

from typing import Any, Iterable

import jwt


def decode_id_token(id_token: str) -> dict[str, Any]:
    """Read the claims of an id token without checking its signature.

    Signature, audience and issuer checks are the caller's job; this only
    exposes what the provider put in the token.
    """
    claims = jwt.decode(
        id_token,
        options={"verify_signature": False, "verify_exp": False, "verify_aud": False},
    )
    return dict(claims)


def _first(values: Any) -> str | None:
    if values is None:
        return None
    if isinstance(values, str):
        return values
    if isinstance(values, Iterable):
        for v in values:
            if v:
                return str(v)
    return None


def extract_emails(claims: dict[str, Any]) -> list[str]:
    # B2C puts addresses in "emails"; workforce tenants use "email".
    emails = claims.get("emails")
    if isinstance(emails, list):
        return [str(e) for e in emails if e]
    email = _first(claims.get("email"))
    return [email] if email else []


def extract_user(claims: dict[str, Any]) -> dict[str, Any]:
    emails = extract_emails(claims)
    return {
        "name": _first(claims.get("name")),
        "given_name": _first(claims.get("given_name")),
        "family_name": _first(claims.get("family_name")),
        "preferred_username": _first(claims.get("preferred_username")) or (emails[0] if emails else None),
        "emails": emails,
        "oid": _first(claims.get("oid")) or _first(claims.get("sub")),
        "tid": _first(claims.get("tid")),
        "policy": _first(claims.get("tfp")) or _first(claims.get("acr")),
    }
