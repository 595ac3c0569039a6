"""
Credential and client configuration for dropboxfs
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from .error import InvalidArgumentException

DEFAULT_OAUTH_VERSION = 1

API_BASE_URL = "https://api.dropboxapi.com/2"
CONTENT_BASE_URL = "https://content.dropboxapi.com/2"


@dataclass(frozen=True)
class Credentials:
    """Operator supplied secrets shared by every request of a connection context."""
    app_key: str
    app_secret: str
    access_token: str

    scheme_version = 0


@dataclass(frozen=True)
class OAuth1Credentials(Credentials):
    """OAuth 1.0a: every request is signed with HMAC-SHA1."""
    access_token_secret: str = ""

    scheme_version = 1


@dataclass(frozen=True)
class OAuth2Credentials(Credentials):
    """OAuth 2: the access token is sent as a bearer token."""

    scheme_version = 2


@dataclass(frozen=True)
class ClientConfig:
    """Non-secret connection settings. All fields have defaults."""
    api_base_url: str = API_BASE_URL
    content_base_url: str = CONTENT_BASE_URL
    timeout: float = 30.0
    user_agent: str = "dropboxfs"
    # SEEK_END lands on size + offset - 1 unless disabled
    legacy_seek_end: bool = True


def _parse_version(raw: Union[str, int, None]) -> int:
    if raw is None or raw == "":
        return DEFAULT_OAUTH_VERSION
    try:
        return int(raw)
    except (TypeError, ValueError) as ex:
        raise InvalidArgumentException(f"Invalid OAuth version ({raw!r})") from ex


def load_credentials(options: Mapping[str, Union[str, int, None]]) -> Credentials:
    """
    Build credentials from the recognised options.

    Options:
        APP_KEY, APP_SECRET, ACCESS_TOKEN: always required.
        ACCESS_TOKEN_SECRET: required when OAUTH is 1.
        OAUTH: signing scheme selector, 1 (default) or 2.

    Raises:
        InvalidArgumentException: a required value is missing or OAUTH is unknown.
    """
    version = _parse_version(options.get("OAUTH"))
    app_key = options.get("APP_KEY")
    app_secret = options.get("APP_SECRET")
    access_token = options.get("ACCESS_TOKEN")
    access_token_secret = options.get("ACCESS_TOKEN_SECRET")

    if version == 1:
        if not (app_key and app_secret and access_token and access_token_secret):
            raise InvalidArgumentException(
                "Missing OAuth values. Make sure you pass APP_KEY, APP_SECRET, "
                "ACCESS_TOKEN and ACCESS_TOKEN_SECRET"
            )
        return OAuth1Credentials(
            app_key=str(app_key),
            app_secret=str(app_secret),
            access_token=str(access_token),
            access_token_secret=str(access_token_secret),
        )
    if version == 2:
        if not (app_key and app_secret and access_token):
            raise InvalidArgumentException(
                "Missing OAuth values. Make sure you pass APP_KEY, APP_SECRET and ACCESS_TOKEN"
            )
        return OAuth2Credentials(
            app_key=str(app_key),
            app_secret=str(app_secret),
            access_token=str(access_token),
        )
    raise InvalidArgumentException(f"Invalid OAuth version ({version})")


def load_credentials_from_env(
    prefix: str = "DROPBOX_",
    environ: Optional[Mapping[str, str]] = None,
) -> Credentials:
    """Same as load_credentials, reading ``<prefix><OPTION>`` environment variables."""
    environ = os.environ if environ is None else environ
    names = ("APP_KEY", "APP_SECRET", "ACCESS_TOKEN", "ACCESS_TOKEN_SECRET", "OAUTH")
    return load_credentials({name: environ.get(f"{prefix}{name}") for name in names})
