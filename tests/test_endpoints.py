from __future__ import annotations

import pytest

import azuread_login.endpoints as ep


def _opts(**overrides):
    values = {
        "is_b2c": True,
        "client_id": "abc",
        "redirect_uri": "myapp://auth",
        "base_url": ep.base_authority_url("contoso", True),
    }
    values.update(overrides)
    return type("Opts", (), values)


def test_base_authority_url_shapes() -> None:
    assert ep.base_authority_url("contoso", True) == "https://contoso.b2clogin.com/contoso.onmicrosoft.com"
    assert ep.base_authority_url("contoso", False) == "https://login.microsoftonline.com/contoso"


def test_authorize_url_b2c_exact() -> None:
    url = ep.authorize_url(_opts(), "B2C_1_signin")
    assert url == (
        "https://contoso.b2clogin.com/contoso.onmicrosoft.com/oauth2/v2.0/authorize"
        "?p=B2C_1_signin&client_id=abc&nonce=defaultNonce&redirect_uri=myapp%3A%2F%2Fauth"
        "&scope=openid&response_type=code&prompt=login"
    )


def test_authorize_url_non_b2c_omits_policy() -> None:
    opts = _opts(is_b2c=False, base_url=ep.base_authority_url("contoso", False))
    url = ep.authorize_url(opts, "B2C_1_signin")
    assert url.startswith("https://login.microsoftonline.com/contoso/oauth2/v2.0/authorize?client_id=abc&")
    assert "p" not in ep.query_parameters(url)


def test_authorize_url_matches_itself() -> None:
    url = ep.authorize_url(_opts(), "B2C_1_signin")
    assert ep.uris_match(url, url)


def test_logout_and_token_urls() -> None:
    opts = _opts()
    assert ep.logout_url(opts) == (
        "https://contoso.b2clogin.com/contoso.onmicrosoft.com/oauth2/v2.0/logout"
        "?post_logout_redirect_uri=myapp%3A%2F%2Fauth"
    )
    assert ep.token_url(opts, "B2C_1_signin") == (
        "https://contoso.b2clogin.com/contoso.onmicrosoft.com/B2C_1_signin/oauth2/v2.0/token"
    )


def test_encode_query_drops_none_and_encodes_everything() -> None:
    assert ep.encode_query({"a": None, "scope": "openid profile", "x": "a/b"}) == "scope=openid%20profile&x=a%2Fb"


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("https://x/y?foo=1", "http://x/y?bar=2", True),
        ("https://x/y", "https://x/z", False),
        ("https://X/Y", "https://x/y", True),
        ("https://x:8443/y", "https://x/y", True),
        ("myapp://auth?code=1", "myapp://auth", True),
        ("https://x/y", "https://other/y", False),
    ],
)
def test_uris_match(a, b, expected) -> None:
    assert ep.uris_match(a, b) is expected
    assert ep.uris_match(b, a) is expected


def test_uris_match_malformed_is_false() -> None:
    assert ep.uris_match("http://[::1", "http://[::1") is False
    assert ep.uris_match(None, "https://x/y") is False


def test_query_parameters_last_wins_and_keeps_blank() -> None:
    params = ep.query_parameters("myapp://auth?code=a&code=b&state=")
    assert params == {"code": "b", "state": ""}
