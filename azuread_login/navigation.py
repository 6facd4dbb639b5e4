from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from azuread_login.endpoints import query_parameters, uris_match
from azuread_login.options import InitialPage, LoginViewOptions
from azuread_login.tokens import TokenBundle, exchange_code_for_tokens

_log = logging.getLogger("azuread_login.navigation")


class NavigationDecision(str, Enum):
    ALLOW = "allow"
    BLOCK = "block"


class PageKind(str, Enum):
    AUTHORIZE = "authorize"
    REGISTER = "register"
    PASSWORD_RESET = "password_reset"
    REDIRECT = "redirect"
    OTHER = "other"


@dataclass(frozen=True)
class NavigationRequest:
    """A navigation the browser is about to perform."""

    url: str


@dataclass(frozen=True)
class NewTokensContext:
    initial_page: InitialPage
    tokens: TokenBundle | None
    navigation: NavigationRequest
    options: LoginViewOptions


@dataclass(frozen=True)
class NavigationErrorContext:
    error: BaseException
    navigation: NavigationRequest


def _debug_navigation_enabled() -> bool:
    return os.getenv("AZUREAD_LOGIN_DEBUG_NAVIGATION", "0").strip().lower() in {"1", "true", "yes", "y", "on"}


def classify(options: LoginViewOptions, url: str) -> PageKind:
    """Map a navigated URL onto the endpoint it targets.

    The order is fixed and the first match wins: on some tenants the redirect
    URI shares host and path with a provider endpoint.
    """
    if uris_match(url, options.login_uri):
        return PageKind.AUTHORIZE
    register_uri = options.register_uri
    if register_uri and uris_match(url, register_uri):
        return PageKind.REGISTER
    password_reset_uri = options.password_reset_uri
    if password_reset_uri and uris_match(url, password_reset_uri):
        return PageKind.PASSWORD_RESET
    if uris_match(url, options.redirect_uri):
        return PageKind.REDIRECT
    return PageKind.OTHER


def _decision_or(result: Any, default: NavigationDecision) -> NavigationDecision:
    if result is None:
        return default
    return NavigationDecision(result)


class NavigationInterceptor:
    """Decides, per navigation, whether the browser may proceed.

    Holds nothing but the options: every call is classified from scratch, and
    the only side effect is the token exchange on the final redirect.
    """

    def __init__(self, options: LoginViewOptions) -> None:
        self.options = options

    def __call__(self, navigation: NavigationRequest) -> NavigationDecision:
        try:
            if _debug_navigation_enabled():
                _log.warning("Navigation to %s", navigation.url)

            # Malformed URLs (bad IPv6 host, non-numeric port) raise here and
            # take the error path instead of being classified as OTHER.
            urlsplit(navigation.url).port

            kind = classify(self.options, navigation.url)
            _log.debug("Navigation classified as %s", kind.value)

            if kind in (PageKind.AUTHORIZE, PageKind.REGISTER, PageKind.PASSWORD_RESET):
                return NavigationDecision.ALLOW
            if kind is PageKind.REDIRECT:
                return self._on_redirect(navigation)
            return NavigationDecision.ALLOW
        except Exception as e:
            return self._on_error(e, navigation)

    def _on_redirect(self, navigation: NavigationRequest) -> NavigationDecision:
        options = self.options
        if options.initial_page is not InitialPage.LOGIN:
            # Register and password reset flows come back without a code.
            context = NewTokensContext(options.initial_page, None, navigation, options)
            return _decision_or(options.on_new_tokens(context), NavigationDecision.ALLOW)

        code = query_parameters(navigation.url).get("code")
        if code is None:
            return NavigationDecision.ALLOW

        try:
            tokens = exchange_code_for_tokens(options=options, code=code)
            context = NewTokensContext(options.initial_page, tokens, navigation, options)
            return _decision_or(options.on_new_tokens(context), NavigationDecision.ALLOW)
        except Exception as e:
            _log.warning("Token exchange on redirect failed: %s", e)
            return self._on_error(e, navigation)

    def _on_error(self, error: BaseException, navigation: NavigationRequest) -> NavigationDecision:
        handler = self.options.on_navigation_error
        if handler is None:
            return NavigationDecision.BLOCK
        try:
            return _decision_or(handler(NavigationErrorContext(error, navigation)), NavigationDecision.BLOCK)
        except Exception:
            _log.exception("Navigation error handler raised")
            return NavigationDecision.BLOCK
