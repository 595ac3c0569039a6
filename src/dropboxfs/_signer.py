"""
Request signers for dropboxfs: OAuth 1.0a HMAC-SHA1 and OAuth 2 bearer tokens
"""

import base64
import hashlib
import hmac
import logging
import random
import time
from typing import Callable, Iterable, Optional, Tuple

from ._url import normalize_for_signing, percent_encode
from .config import Credentials, OAuth1Credentials, OAuth2Credentials
from .error import InvalidArgumentException

logger = logging.getLogger(__name__)


def _default_nonce(timestamp: str) -> str:
    return f"{timestamp}*{random.getrandbits(31)}"


class OAuth1Signer:
    """
    Signs requests using OAuth 1.0a with HMAC-SHA1.
    A fresh timestamp and nonce are generated for every signature unless
    fixed ones are passed in.
    """

    def __init__(
        self,
        credentials: OAuth1Credentials,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[str], str] = _default_nonce,
    ):
        self.credentials = credentials
        self._clock = clock
        self._nonce_factory = nonce_factory

    def _protocol_params(self, nonce: str, timestamp: str) -> list:
        return [
            ("oauth_version", "1.0"),
            ("oauth_token", self.credentials.access_token),
            ("oauth_signature_method", "HMAC-SHA1"),
            ("oauth_consumer_key", self.credentials.app_key),
            ("oauth_nonce", nonce),
            ("oauth_timestamp", timestamp),
        ]

    def normalized_parameters(
        self,
        query_params: Iterable[Tuple[str, str]],
        nonce: str,
        timestamp: str,
    ) -> str:
        """Build the normalized parameter string (sorted, escaped, '&' joined)."""
        pairs = [
            (percent_encode(k), percent_encode(v))
            for k, v in list(query_params) + self._protocol_params(nonce, timestamp)
        ]
        # Byte-wise comparison on the key only; the sort is stable
        pairs.sort(key=lambda kv: kv[0].encode())
        return "&".join(f"{k}={v}" for k, v in pairs)

    @staticmethod
    def base_string(method: str, url: str, normalized_params: str) -> str:
        """Signature base string: METHOD&enc(url)&enc(params)."""
        return "&".join([
            method.upper(),
            percent_encode(normalize_for_signing(url)),
            percent_encode(normalized_params),
        ])

    def signature(self, method: str, url: str, normalized_params: str) -> str:
        """base64(HMAC-SHA1(key, base string))."""
        key = (
            f"{percent_encode(self.credentials.app_secret)}"
            f"&{percent_encode(self.credentials.access_token_secret)}"
        )
        payload = self.base_string(method, url, normalized_params)
        logger.debug("[DropboxFS][Signer] method=%s url=%s", method, url)
        digest = hmac.new(key.encode(), payload.encode(), hashlib.sha1).digest()
        return base64.b64encode(digest).decode()

    def authorization(
        self,
        method: str,
        url: str,
        query_params: Optional[Iterable[Tuple[str, str]]] = None,
        nonce: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> str:
        """
        Authorization header value for a request.

        ``url`` must not carry a query string; the same ``query_params`` must
        be appended to the URL that is actually sent.
        """
        if timestamp is None:
            timestamp = str(int(self._clock()))
        if nonce is None:
            nonce = self._nonce_factory(timestamp)

        params = self.normalized_parameters(query_params or [], nonce, timestamp)
        signature = self.signature(method, url, params)

        fields = [
            ("oauth_version", "1.0"),
            ("oauth_signature_method", "HMAC-SHA1"),
            ("oauth_nonce", nonce),
            ("oauth_timestamp", timestamp),
            ("oauth_consumer_key", self.credentials.app_key),
            ("oauth_token", self.credentials.access_token),
            ("oauth_signature", signature),
        ]
        return "OAuth " + ", ".join(f'{k}="{percent_encode(v)}"' for k, v in fields)


class BearerSigner:
    """OAuth 2: no signing, the access token goes into the header as is."""

    def __init__(self, credentials: OAuth2Credentials):
        self.credentials = credentials

    def authorization(
        self,
        method: str,
        url: str,
        query_params: Optional[Iterable[Tuple[str, str]]] = None,
        **kwargs,
    ) -> str:
        return f"Bearer {self.credentials.access_token}"


def signer_for(credentials: Credentials):
    """Pick the signer matching the credentials' scheme."""
    if isinstance(credentials, OAuth1Credentials):
        return OAuth1Signer(credentials)
    if isinstance(credentials, OAuth2Credentials):
        return BearerSigner(credentials)
    raise InvalidArgumentException(
        f"Invalid OAuth version ({getattr(credentials, 'scheme_version', None)})"
    )
