from __future__ import annotations

from azuread_login.navigation import NavigationDecision
from azuread_login.playwright_browser import PlaywrightBrowserControl


class FakeRequest:
    def __init__(self, url, navigation=True):
        self.url = url
        self._navigation = navigation

    def is_navigation_request(self):
        return self._navigation


class FakeResponse:
    def __init__(self, status=200, headers=None):
        self.status = status
        self.headers = headers or {}


class FakeRoute:
    def __init__(self, response=None):
        self.actions = []
        self.response = response or FakeResponse()

    def continue_(self):
        self.actions.append("continue")

    def abort(self, error_code=None):
        self.actions.append(("abort", error_code))

    def fetch(self, max_redirects=None):
        self.actions.append(("fetch", max_redirects))
        return self.response

    def fulfill(self, response=None):
        self.actions.append(("fulfill", response))


class FakeCDPSession:
    def __init__(self, log):
        self.log = log

    def send(self, method):
        self.log.append(("cdp", method))

    def detach(self):
        self.log.append(("detach",))


class FakeContext:
    def __init__(self, log):
        self.log = log

    def clear_cookies(self):
        self.log.append(("clear_cookies",))

    def new_cdp_session(self, page):
        return FakeCDPSession(self.log)


class FakePage:
    def __init__(self):
        self.log = []
        self.context = FakeContext(self.log)
        self.route_handler = None

    def route(self, pattern, handler):
        self.log.append(("route", pattern))
        self.route_handler = handler

    def add_init_script(self, script=None):
        self.log.append(("init_script", script))

    def goto(self, url):
        self.log.append(("goto", url))


def _control(decide):
    page = FakePage()
    control = PlaywrightBrowserControl(page)
    seen = []

    def handler(navigation):
        seen.append(navigation)
        return decide(navigation.url)

    control.set_navigation_handler(handler)
    return page, seen


def test_commands_map_to_page_calls() -> None:
    page = FakePage()
    control = PlaywrightBrowserControl(page)

    control.clear_cache()
    control.run_script("window.x = 1")
    control.open("https://login")

    assert page.log == [
        ("clear_cookies",),
        ("cdp", "Network.clearBrowserCache"),
        ("detach",),
        ("init_script", "window.x = 1"),
        ("goto", "https://login"),
    ]


def test_non_chromium_clear_cache_only_clears_cookies() -> None:
    page = FakePage()
    PlaywrightBrowserControl(page, browser_name="firefox").clear_cache()
    assert page.log == [("clear_cookies",)]


def test_subresources_bypass_the_handler() -> None:
    page, seen = _control(lambda url: NavigationDecision.BLOCK)
    route = FakeRoute()

    page.route_handler(route, FakeRequest("https://cdn/app.js", navigation=False))

    assert route.actions == ["continue"]
    assert seen == []


def test_blocked_navigation_is_aborted() -> None:
    page, seen = _control(lambda url: NavigationDecision.BLOCK)
    route = FakeRoute()

    page.route_handler(route, FakeRequest("https://login/page"))

    assert route.actions == [("abort", "blockedbyclient")]
    assert [n.url for n in seen] == ["https://login/page"]


def test_allowed_navigation_is_fetched_and_fulfilled() -> None:
    page, seen = _control(lambda url: NavigationDecision.ALLOW)
    response = FakeResponse(200)
    route = FakeRoute(response)

    page.route_handler(route, FakeRequest("https://login/page"))

    assert route.actions == [("fetch", 0), ("fulfill", response)]


def test_redirect_target_is_decided_before_following() -> None:
    page, seen = _control(
        lambda url: NavigationDecision.BLOCK if url.startswith("myapp://") else NavigationDecision.ALLOW
    )
    route = FakeRoute(FakeResponse(302, {"location": "myapp://auth?code=XYZ"}))

    page.route_handler(route, FakeRequest("https://login/confirmed"))

    assert [n.url for n in seen] == ["https://login/confirmed", "myapp://auth?code=XYZ"]
    assert route.actions == [("fetch", 0), ("abort", "blockedbyclient")]


def test_relative_redirect_is_resolved() -> None:
    page, seen = _control(lambda url: NavigationDecision.ALLOW)
    response = FakeResponse(302, {"location": "/next"})
    route = FakeRoute(response)

    page.route_handler(route, FakeRequest("https://login/a/b"))

    assert seen[1].url == "https://login/next"
    assert route.actions[-1] == ("fulfill", response)


def test_only_the_first_redirect_hop_is_looked_ahead() -> None:
    page, seen = _control(lambda url: NavigationDecision.ALLOW)
    response = FakeResponse(302, {"location": "https://login/step2"})
    route = FakeRoute(response)

    page.route_handler(route, FakeRequest("https://login/step1"))

    assert [n.url for n in seen] == ["https://login/step1", "https://login/step2"]
    assert route.actions == [("fetch", 0), ("fulfill", response)]
