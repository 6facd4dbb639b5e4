from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from azuread_login.errors import ConfigurationError
from azuread_login.options import InitialPage, LoginViewOptions, LoginViewOptionsBuilder

_ENV_KEYS = {
    "tenant": "AZUREAD_TENANT",
    "client_id": "AZUREAD_CLIENT_ID",
    "redirect_uri": "AZUREAD_REDIRECT_URI",
    "login_policy": "AZUREAD_LOGIN_POLICY",
    "register_policy": "AZUREAD_REGISTER_POLICY",
    "password_reset_policy": "AZUREAD_PASSWORD_RESET_POLICY",
    "scopes": "AZUREAD_SCOPES",
    "is_b2c": "AZUREAD_IS_B2C",
    "initial_uri": "AZUREAD_INITIAL_URI",
    "clear_cache": "AZUREAD_CLEAR_CACHE",
}


def _is_template_placeholder(v: str) -> bool:
    s = str(v or "").strip()
    return bool(s) and s.startswith("<") and s.endswith(">")


def _parse_bool(v: Any, default: bool = False) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _parse_scopes(v: Any) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [s.strip() for s in v.replace(",", " ").split() if s.strip()]
    return [str(s) for s in v]


def _optional_str(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _callback(data: Mapping[str, Any], key: str) -> Any:
    fn = data.get(key)
    if fn is not None and not callable(fn):
        raise ConfigurationError(f"{key} must be callable", field=key)
    return fn


def builder_from_mapping(data: Mapping[str, Any]) -> LoginViewOptionsBuilder:
    """Translate a loosely typed key/value mapping into builder calls.

    Unknown keys are ignored. Callbacks may be included as callables, but a
    mapping read from disk cannot carry them; attach them to the returned
    builder before calling ``build()``.
    """
    builder = (
        LoginViewOptionsBuilder()
        .set_tenant(_optional_str(data.get("tenant")))
        .set_client_id(_optional_str(data.get("client_id")))
        .set_redirect_uri(_optional_str(data.get("redirect_uri")))
        .set_login_policy(_optional_str(data.get("login_policy")))
        .set_register_policy(_optional_str(data.get("register_policy")))
        .set_password_reset_policy(_optional_str(data.get("password_reset_policy")))
        .set_scopes(_parse_scopes(data.get("scopes")))
        .set_no_default_scopes(_parse_bool(data.get("no_default_scopes")))
        .set_is_b2c(_parse_bool(data.get("is_b2c"), default=True))
        .set_clear_cache(_parse_bool(data.get("clear_cache")))
        .set_initial_javascript(_optional_str(data.get("initial_javascript")))
        .set_on_new_tokens(_callback(data, "on_new_tokens"))
        .set_on_navigation_error(_callback(data, "on_navigation_error"))
    )

    initial_uri = _optional_str(data.get("initial_uri"))
    if initial_uri:
        try:
            builder.set_initial_page(InitialPage(initial_uri.lower()))
        except ValueError as e:
            raise ConfigurationError(f"Unknown initial_uri: {initial_uri}", field="initial_uri") from e

    return builder


def builder_from_json(text: str) -> LoginViewOptionsBuilder:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ConfigurationError(f"Options JSON is invalid: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError("Options JSON must be an object")
    return builder_from_mapping(data)


def options_from_mapping(data: Mapping[str, Any]) -> LoginViewOptions:
    return builder_from_mapping(data).build()


def options_from_json(text: str) -> LoginViewOptions:
    return builder_from_json(text).build()


def _resolve_setting(name: str, default: Any = None) -> Any:
    """Resolve a setting from env -> default.

    Environment variables always win (useful for tests/local overrides).
    Template placeholders such as ``<client-id>`` count as unset.
    """
    env_val = os.getenv(name)
    env_chosen = str(env_val).strip() if env_val is not None else ""
    if env_chosen and not _is_template_placeholder(env_chosen):
        return env_chosen

    if isinstance(default, str) and _is_template_placeholder(default):
        return None
    return default


def load_login_options(config_path: str = "configs/azuread_login.yaml") -> LoginViewOptionsBuilder:
    """Read options from YAML with environment overrides.

    Returns a builder: callbacks are code and have to be attached by the
    caller before ``build()``.
    """
    repo_root = Path(__file__).resolve().parents[1]
    resolved_path = Path(config_path)
    if not resolved_path.is_absolute():
        resolved_path = repo_root / resolved_path

    data: dict[str, Any] = {}
    if resolved_path.exists():
        with open(resolved_path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"{resolved_path} must contain a mapping")
        data.update(loaded)

    for key, env_name in _ENV_KEYS.items():
        data[key] = _resolve_setting(env_name, data.get(key))

    return builder_from_mapping(data)
