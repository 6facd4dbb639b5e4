"""
Playwright browser control

Runs the login view inside a Chromium window driven by Playwright's sync API.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator
from urllib.parse import urljoin

from azuread_login.navigation import NavigationDecision, NavigationRequest
from azuread_login.view import BrowserControl, NavigationHandler

if TYPE_CHECKING:
    from playwright.sync_api import Page, Request, Route

_log = logging.getLogger("azuread_login.playwright")


class PlaywrightBrowserControl(BrowserControl):
    """BrowserControl backed by a Playwright page.

    Navigation requests are routed through the handler. Allowed ones are
    fetched without following redirects so that a redirect to the app's
    redirect URI (including custom schemes the browser cannot load) is seen
    and decided before the browser follows it.
    """

    def __init__(self, page: "Page", *, browser_name: str = "chromium") -> None:
        self.page = page
        self.browser_name = browser_name
        self._handler: NavigationHandler | None = None

    def set_navigation_handler(self, handler: NavigationHandler) -> None:
        self._handler = handler
        self.page.route("**/*", self._on_route)

    def clear_cache(self) -> None:
        self.page.context.clear_cookies()
        if self.browser_name == "chromium":
            session = self.page.context.new_cdp_session(self.page)
            try:
                session.send("Network.clearBrowserCache")
            finally:
                session.detach()
        _log.info("Browser cookies and cache cleared")

    def run_script(self, script: str) -> None:
        self.page.add_init_script(script=script)

    def open(self, url: str) -> None:
        self.page.goto(url)

    def wait_until_closed(self) -> None:
        self.page.wait_for_event("close", timeout=0)

    def _decide(self, url: str) -> NavigationDecision:
        if self._handler is None:
            return NavigationDecision.ALLOW
        return self._handler(NavigationRequest(url=url))

    def _on_route(self, route: "Route", request: "Request") -> None:
        if not request.is_navigation_request():
            route.continue_()
            return

        if self._decide(request.url) is NavigationDecision.BLOCK:
            route.abort("blockedbyclient")
            return

        # Only one hop is looked ahead. Fetching further hops here would either
        # run them twice or leave the page on the first URL, so a chain that
        # reaches the redirect URI after several provider hops is not seen.
        response = route.fetch(max_redirects=0)
        location = response.headers.get("location")
        if 300 <= response.status < 400 and location:
            target = urljoin(request.url, location)
            if self._decide(target) is NavigationDecision.BLOCK:
                route.abort("blockedbyclient")
                return
        route.fulfill(response=response)


@contextmanager
def launch_browser(*, headless: bool = False, **launch_args: Any) -> Iterator[PlaywrightBrowserControl]:
    """Start Chromium and yield a control bound to a fresh page."""
    from playwright.sync_api import sync_playwright

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=headless, **launch_args)
        try:
            context = browser.new_context()
            page = context.new_page()
            yield PlaywrightBrowserControl(page, browser_name="chromium")
        finally:
            browser.close()
