"""
URL helpers for dropboxfs: path extraction, API URL building and the
canonical URL form used by OAuth 1.0a signing
"""

from typing import Iterable, Optional, Tuple
from urllib.parse import quote

from .error import InvalidArgumentException


def percent_encode(value: str) -> str:
    """Percent-encode everything outside the RFC 3986 unreserved set."""
    return quote(str(value), safe="~")


def extract_path(url: str) -> str:
    """
    Return the path part of ``scheme://host/path``, always starting with '/'.

    A bare ``scheme://host`` yields '/'.
    """
    colon = url.find(":")
    if colon < 0:
        raise InvalidArgumentException(f"Invalid Dropbox url: {url!r}")
    rest = url[colon + 1:].lstrip("/")
    if not rest:
        raise InvalidArgumentException(f"Invalid Dropbox url: {url!r}")
    slash = rest.find("/")
    if slash < 0:
        return "/"
    return rest[slash:]


def build_api_url(api_base: str, url: str) -> str:
    """Concatenate an API base and the path extracted from ``url``."""
    return f"{api_base}{extract_path(url)}"


def to_api_path(path: str) -> str:
    """The API spells the root folder as the empty string."""
    return "" if path == "/" else path


def append_query(url: str, params: Iterable[Tuple[str, str]]) -> str:
    """Append percent-encoded key/value pairs to ``url``."""
    pairs = [f"{percent_encode(k)}={percent_encode(v)}" for k, v in params]
    if not pairs:
        return url
    return f"{url}?{'&'.join(pairs)}"


def normalize_for_signing(url: str, max_length: Optional[int] = None) -> str:
    """
    Canonical URL form for signature base strings.

    Scheme and host are lower-cased, repeated slashes are collapsed and the
    two characters after every '%' are upper-cased. The path is otherwise
    left untouched.
    """
    if max_length is not None and len(url) > max_length:
        raise InvalidArgumentException(
            f"URL of length {len(url)} does not fit in {max_length} characters"
        )

    colon = url.find(":")
    if colon < 0:
        return url.lower()

    out = [url[:colon + 1].lower(), "//"]
    rest = url[colon + 1:].lstrip("/")

    slash = rest.find("/")
    if slash < 0:
        out.append(rest.lower())
        return "".join(out)
    out.append(rest[:slash].lower())

    path = rest[slash:]
    i = 0
    while i < len(path):
        ch = path[i]
        if ch == "/":
            out.append("/")
            while i < len(path) and path[i] == "/":
                i += 1
            continue
        out.append(ch)
        i += 1
        if ch == "%":
            out.append(path[i:i + 2].upper())
            i += 2
    return "".join(out)
