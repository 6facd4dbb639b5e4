from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from azuread_login.endpoints import authorize_url, base_authority_url, logout_url, token_url
from azuread_login.errors import ConfigurationError

if TYPE_CHECKING:
    from azuread_login.navigation import NavigationDecision, NavigationErrorContext, NewTokensContext

    NewTokensHandler = Callable[[NewTokensContext], Optional[NavigationDecision]]
    NavigationErrorHandler = Callable[[NavigationErrorContext], Optional[NavigationDecision]]


DEFAULT_SCOPES: tuple[str, ...] = ("openid", "profile offline_access")


class InitialPage(str, Enum):
    LOGIN = "login"
    REGISTER = "register"
    PASSWORD_RESET = "password_reset"


@dataclass(frozen=True)
class LoginViewOptions:
    """Validated, read-only settings of one login view.

    Instances come from :class:`LoginViewOptionsBuilder`; nothing mutates them
    afterwards.
    """

    tenant: str
    client_id: str
    redirect_uri: str
    login_policy: str
    on_new_tokens: "NewTokensHandler"
    register_policy: str | None = None
    password_reset_policy: str | None = None
    scopes: tuple[str, ...] = DEFAULT_SCOPES
    is_b2c: bool = True
    initial_page: InitialPage = InitialPage.LOGIN
    clear_cache: bool = False
    initial_javascript: str | None = None
    on_navigation_error: "NavigationErrorHandler | None" = None

    @property
    def base_url(self) -> str:
        return base_authority_url(self.tenant, self.is_b2c)

    @property
    def login_uri(self) -> str:
        return authorize_url(self, self.login_policy)

    @property
    def register_uri(self) -> str | None:
        if not self.register_policy:
            return None
        return authorize_url(self, self.register_policy)

    @property
    def password_reset_uri(self) -> str | None:
        if not self.password_reset_policy:
            return None
        return authorize_url(self, self.password_reset_policy)

    @property
    def initial_uri(self) -> str:
        if self.initial_page is InitialPage.REGISTER:
            return authorize_url(self, self.register_policy)
        if self.initial_page is InitialPage.PASSWORD_RESET:
            return authorize_url(self, self.password_reset_policy)
        return self.login_uri

    @property
    def logout_uri(self) -> str:
        return logout_url(self)

    @property
    def token_uri(self) -> str:
        return token_url(self, self.login_policy)


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class LoginViewOptionsBuilder:
    """Mutable staging area for :class:`LoginViewOptions`.

    Setters return the builder so calls can be chained; validation happens
    only in :meth:`build`.
    """

    def __init__(self) -> None:
        self._tenant: str | None = None
        self._client_id: str | None = None
        self._redirect_uri: str | None = None
        self._login_policy: str | None = None
        self._register_policy: str | None = None
        self._password_reset_policy: str | None = None
        self._scopes: list[str] = []
        self._no_default_scopes = False
        self._is_b2c = True
        self._initial_page = InitialPage.LOGIN
        self._clear_cache = False
        self._initial_javascript: str | None = None
        self._on_new_tokens: NewTokensHandler | None = None
        self._on_navigation_error: NavigationErrorHandler | None = None

    def set_tenant(self, tenant: str | None) -> "LoginViewOptionsBuilder":
        self._tenant = tenant
        return self

    def set_client_id(self, client_id: str | None) -> "LoginViewOptionsBuilder":
        self._client_id = client_id
        return self

    def set_redirect_uri(self, redirect_uri: str | None) -> "LoginViewOptionsBuilder":
        self._redirect_uri = redirect_uri
        return self

    def set_login_policy(self, login_policy: str | None) -> "LoginViewOptionsBuilder":
        self._login_policy = login_policy
        return self

    def set_register_policy(self, register_policy: str | None) -> "LoginViewOptionsBuilder":
        self._register_policy = register_policy
        return self

    def set_password_reset_policy(self, password_reset_policy: str | None) -> "LoginViewOptionsBuilder":
        self._password_reset_policy = password_reset_policy
        return self

    def set_scopes(self, scopes: Iterable[str]) -> "LoginViewOptionsBuilder":
        self._scopes = [str(s) for s in scopes]
        return self

    def set_no_default_scopes(self, no_default_scopes: bool = True) -> "LoginViewOptionsBuilder":
        self._no_default_scopes = bool(no_default_scopes)
        return self

    def set_is_b2c(self, is_b2c: bool) -> "LoginViewOptionsBuilder":
        self._is_b2c = bool(is_b2c)
        return self

    def set_initial_page(self, initial_page: InitialPage) -> "LoginViewOptionsBuilder":
        self._initial_page = InitialPage(initial_page)
        return self

    def set_clear_cache(self, clear_cache: bool = True) -> "LoginViewOptionsBuilder":
        self._clear_cache = bool(clear_cache)
        return self

    def set_initial_javascript(self, script: str | None) -> "LoginViewOptionsBuilder":
        self._initial_javascript = script
        return self

    def set_on_new_tokens(self, handler: "NewTokensHandler | None") -> "LoginViewOptionsBuilder":
        self._on_new_tokens = handler
        return self

    def set_on_navigation_error(self, handler: "NavigationErrorHandler | None") -> "LoginViewOptionsBuilder":
        self._on_navigation_error = handler
        return self

    @property
    def scopes(self) -> tuple[str, ...]:
        if self._no_default_scopes:
            return tuple(self._scopes)
        return tuple(self._scopes) + DEFAULT_SCOPES

    def build(self) -> LoginViewOptions:
        for name, value in (
            ("client_id", self._client_id),
            ("tenant", self._tenant),
            ("login_policy", self._login_policy),
            ("redirect_uri", self._redirect_uri),
        ):
            if _blank(value):
                raise ConfigurationError(f"{name} is required", field=name)
        if self._on_new_tokens is None:
            raise ConfigurationError("on_new_tokens is required", field="on_new_tokens")

        # initial_page decides how the redirect is handled, so its page must exist.
        if self._initial_page is InitialPage.REGISTER and _blank(self._register_policy):
            raise ConfigurationError("register_policy is required for initial page register", field="register_policy")
        if self._initial_page is InitialPage.PASSWORD_RESET and _blank(self._password_reset_policy):
            raise ConfigurationError(
                "password_reset_policy is required for initial page password_reset",
                field="password_reset_policy",
            )

        return LoginViewOptions(
            tenant=str(self._tenant),
            client_id=str(self._client_id),
            redirect_uri=str(self._redirect_uri),
            login_policy=str(self._login_policy),
            on_new_tokens=self._on_new_tokens,
            register_policy=None if _blank(self._register_policy) else self._register_policy,
            password_reset_policy=None if _blank(self._password_reset_policy) else self._password_reset_policy,
            scopes=self.scopes,
            is_b2c=self._is_b2c,
            initial_page=self._initial_page,
            clear_cache=self._clear_cache,
            initial_javascript=self._initial_javascript or None,
            on_navigation_error=self._on_navigation_error,
        )
