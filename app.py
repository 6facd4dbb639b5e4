from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import TextIO

from azuread_login.config import load_login_options
from azuread_login.navigation import NavigationDecision, NavigationErrorContext, NewTokensContext
from azuread_login.view import AzureADLoginView


def create_view(config_path: str, *, out: TextIO = sys.stdout) -> AzureADLoginView:
    """Build a login view that prints received tokens as JSON."""

    def on_new_tokens(ctx: NewTokensContext) -> NavigationDecision:
        payload = {"initial_page": ctx.initial_page.value}
        if ctx.tokens is not None:
            payload["tokens"] = ctx.tokens.to_dict()
            payload["user"] = ctx.tokens.user()
        out.write(json.dumps(payload, indent=2) + "\n")
        out.flush()
        # Nothing is served at the redirect URI; stay on the current page.
        return NavigationDecision.BLOCK

    def on_navigation_error(ctx: NavigationErrorContext) -> NavigationDecision:
        out.write(json.dumps({"error": str(ctx.error)}) + "\n")
        out.flush()
        return NavigationDecision.BLOCK

    options = (
        load_login_options(config_path)
        .set_on_new_tokens(on_new_tokens)
        .set_on_navigation_error(on_navigation_error)
        .build()
    )
    return AzureADLoginView(options)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sign in against Azure AD / B2C in a browser window.")
    parser.add_argument(
        "--config",
        default=os.getenv("AZUREAD_LOGIN_CONFIG") or "configs/azuread_login.yaml",
        help="YAML options file (AZUREAD_* environment variables override it)",
    )
    parser.add_argument("--headless", action="store_true", help="Run the browser without a window")
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    view = create_view(args.config)

    from azuread_login.playwright_browser import launch_browser

    with launch_browser(headless=args.headless) as browser:
        view.attach(browser)
        browser.wait_until_closed()


if __name__ == "__main__":
    main()
