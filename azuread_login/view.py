"""
Login view

Binds a browser control to a navigation interceptor and performs the
one-time startup actions once the browser is ready.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

from azuread_login.errors import StateError
from azuread_login.navigation import NavigationDecision, NavigationInterceptor, NavigationRequest
from azuread_login.options import LoginViewOptions

_log = logging.getLogger("azuread_login.view")

NavigationHandler = Callable[[NavigationRequest], NavigationDecision]


class BrowserControl(ABC):
    """Interface for the embedded browser the view drives"""

    @abstractmethod
    def set_navigation_handler(self, handler: NavigationHandler) -> None:
        """
        Register the callable consulted before every navigation.

        The browser must wait for the returned decision before proceeding.
        """
        pass

    @abstractmethod
    def clear_cache(self) -> None:
        """Drop cookies and cached responses."""
        pass

    @abstractmethod
    def run_script(self, script: str) -> None:
        """Inject a script into the pages the browser loads."""
        pass

    @abstractmethod
    def open(self, url: str) -> None:
        """Navigate to ``url``."""
        pass


class AzureADLoginView:
    """An Azure AD / B2C login flow running inside a :class:`BrowserControl`."""

    def __init__(self, options: LoginViewOptions) -> None:
        self.options = options
        self.interceptor = NavigationInterceptor(options)
        self.browser: BrowserControl | None = None

    def attach(self, browser: BrowserControl) -> None:
        """Take over ``browser``, which is ready to receive commands."""
        self.browser = browser
        browser.set_navigation_handler(self.handle_navigation)

        if self.options.clear_cache:
            browser.clear_cache()
        if self.options.initial_javascript:
            browser.run_script(self.options.initial_javascript)

        _log.info(
            "Opening %s page (tenant=%s, client_id=%s)",
            self.options.initial_page.value,
            self.options.tenant,
            self.options.client_id,
        )
        browser.open(self.options.initial_uri)

    def handle_navigation(self, navigation: NavigationRequest) -> NavigationDecision:
        decision = self.interceptor(navigation)
        _log.debug("Navigation decision: %s", decision.value)
        return decision

    def logout(self) -> None:
        if self.browser is None:
            raise StateError("No browser attached")
        self.browser.open(self.options.logout_uri)
