"""
HTTP transport for dropboxfs
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ._url import append_query
from .error import (
    DropboxFSException,
    ErrorKind,
    InvalidArgumentException,
    RemoteIOException,
    exception_for,
)
from .models import ApiRequest, ApiResponse

logger = logging.getLogger(__name__)

# Leaf error tags of a 409 body; anything not listed is a conflict
ERROR_TAG_KINDS = {
    "not_found": ErrorKind.NOT_FOUND,
    "no_write_permission": ErrorKind.PERMISSION_DENIED,
    "malformed_path": ErrorKind.INVALID_ARGUMENT,
    "disallowed_name": ErrorKind.INVALID_ARGUMENT,
    "incorrect_offset": ErrorKind.INVALID_ARGUMENT,
    "too_many_write_operations": ErrorKind.RATE_LIMITED,
    "insufficient_space": ErrorKind.IO_ERROR,
}


def parse_error_tag(body: bytes) -> Optional[str]:
    """
    Extract the nested ``.tag`` chain of an error body, e.g. ``path/not_found``.

    Returns None when the body is not JSON or carries no tag.
    """
    try:
        doc = json.loads(body)
    except ValueError:
        return None
    if not isinstance(doc, dict):
        return None

    node = doc.get("error")
    tags: List[str] = []
    while isinstance(node, dict) and isinstance(node.get(".tag"), str):
        tag = node[".tag"]
        tags.append(tag)
        node = node.get(tag)

    if tags:
        return "/".join(tags)
    summary = doc.get("error_summary")
    if isinstance(summary, str) and summary.strip("/. "):
        return "/".join(part for part in summary.split("/") if part.strip("."))
    return None


def map_conflict(body: bytes) -> DropboxFSException:
    """Map a 409 body to the local taxonomy through its leaf error tag."""
    tag = parse_error_tag(body)
    if tag is None:
        return InvalidArgumentException(
            "HTTP 409 with an unparsable error body", status_code=409
        )
    leaf = tag.rsplit("/", 1)[-1]
    kind = ERROR_TAG_KINDS.get(leaf, ErrorKind.CONFLICT)
    return exception_for(kind, f"HTTP 409: {tag}", status_code=409, error_tag=tag)


def map_http_status(status_code: int, body: bytes = b"") -> Optional[DropboxFSException]:
    """Return the exception for an HTTP status, or None on success."""
    if status_code < 400:
        return None
    if status_code == 400:
        return exception_for(ErrorKind.INVALID_ARGUMENT, "HTTP 400: bad request", 400)
    if status_code == 401:
        return exception_for(
            ErrorKind.PERMISSION_DENIED, "HTTP 401: token invalid/expired/revoked", 401
        )
    if status_code == 403:
        return exception_for(ErrorKind.PERMISSION_DENIED, "HTTP 403: forbidden", 403)
    if status_code == 404:
        return exception_for(ErrorKind.NOT_FOUND, "HTTP 404: not found", 404)
    if status_code == 409:
        return map_conflict(body)
    if status_code == 429:
        return exception_for(ErrorKind.RATE_LIMITED, "HTTP 429: too many requests", 429)
    return exception_for(ErrorKind.IO_ERROR, f"HTTP Response {status_code}", status_code)


class HttpClient:
    """
    HTTP client wrapper owning one httpx connection pool.
    Requests are executed serially and never retried.
    """

    def __init__(
        self,
        signer,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.signer = signer
        self.timeout = timeout
        headers = {"User-Agent": user_agent} if user_agent else None
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers=headers,
            transport=transport,
            event_hooks={"request": [self._log_request], "response": [self._log_response]},
        )

    @staticmethod
    def _log_request(request: httpx.Request) -> None:
        logger.debug("[DropboxFS][Request] method=%s url=%s", request.method, request.url)

    @staticmethod
    def _log_response(response: httpx.Response) -> None:
        logger.debug(
            "[DropboxFS][Response] method=%s url=%s status=%s",
            response.request.method,
            response.request.url,
            response.status_code,
        )

    def _build_headers(self, request: ApiRequest) -> Dict[str, str]:
        headers = dict(request.headers)
        headers["Authorization"] = self.signer.authorization(
            request.method, request.url, request.query
        )
        range_header = request.range_header()
        if range_header:
            headers["Range"] = range_header
        return headers

    def execute(self, request: ApiRequest, max_size: Optional[int] = None) -> ApiResponse:
        """
        Sign and perform one request.

        Args:
            request: the request to send; its query is signed and appended to the URL
            max_size: capacity of the caller's buffer. A longer body is an error.

        Raises:
            DropboxFSException: the subclass matching the mapped ErrorKind.
        """
        # Sign before the query is appended, over the same parameter list
        headers = self._build_headers(request)
        url = append_query(request.url, request.query)

        kwargs: Dict[str, Any] = {"headers": headers}
        if request.json is not None:
            kwargs["json"] = request.json
        elif request.body is not None:
            kwargs["content"] = request.body

        try:
            with self._client.stream(request.method, url, **kwargs) as response:
                limit = max_size if response.status_code < 400 else None
                body, overflow = self._read_body(response, limit)
                status_code = response.status_code
        except httpx.RequestError as ex:
            raise RemoteIOException(f"{ex.__class__.__name__}: {ex}") from ex

        error = map_http_status(status_code, body)
        if error is not None:
            logger.debug(
                "[DropboxFS][Error] status=%s tag=%s kind=%s",
                status_code,
                error.error_tag,
                error.kind.value,
            )
            raise error
        if overflow:
            raise RemoteIOException(
                f"Response larger than the {max_size} byte buffer", status_code=status_code
            )

        return ApiResponse(status_code=status_code, body=body, content_length=len(body))

    @staticmethod
    def _read_body(response: httpx.Response, max_size: Optional[int]) -> Tuple[bytes, bool]:
        chunks = []
        total = 0
        for chunk in response.iter_bytes():
            if max_size is not None and total + len(chunk) > max_size:
                chunks.append(chunk[:max_size - total])
                return b"".join(chunks), True
            chunks.append(chunk)
            total += len(chunk)
        return b"".join(chunks), False

    def close(self):
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
