"""
DropboxClient - connection context for the Dropbox HTTP API
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ._http import HttpClient
from ._signer import signer_for
from ._url import to_api_path
from .config import ClientConfig, Credentials, load_credentials
from .error import RemoteIOException
from .models import ApiRequest, ApiResponse, ListFolderResult


class DropboxClient:
    """
    Connection context: credentials, signer and one HTTP connection pool,
    shared read-only by every filesystem operation.

    Requests run serially on the calling thread. Use one client per thread
    or serialize access externally.

    Example:
        with DropboxClient.from_options({"OAUTH": 2, "APP_KEY": "...",
                                         "APP_SECRET": "...", "ACCESS_TOKEN": "..."}) as client:
            client.get_metadata("/Photos/cat.jpg")
    """

    def __init__(
        self,
        credentials: Credentials,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize DropboxClient.

        Args:
            credentials: validated credentials, see config.load_credentials
            config: base URLs, timeout and behaviour switches
            transport: custom httpx transport, mostly for tests
        """
        self.credentials = credentials
        self.config = config or ClientConfig()
        self._signer = signer_for(credentials)
        self._http = HttpClient(
            self._signer,
            timeout=self.config.timeout,
            user_agent=self.config.user_agent,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    @classmethod
    def from_options(cls, options, config: Optional[ClientConfig] = None, **kwargs) -> "DropboxClient":
        """Validate ``options`` eagerly and build a client."""
        return cls(load_credentials(options), config=config, **kwargs)

    def _api_url(self, endpoint: str) -> str:
        return f"{self.config.api_base_url}/{endpoint}"

    def _content_url(self, endpoint: str) -> str:
        return f"{self.config.content_base_url}/{endpoint}"

    def execute(self, request: ApiRequest, max_size: Optional[int] = None) -> ApiResponse:
        return self._http.execute(request, max_size=max_size)

    def _rpc(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a JSON payload to an RPC endpoint and decode the JSON answer."""
        self._logger.debug("[DropboxFS][Rpc] endpoint=%s payload=%s", endpoint, payload)
        response = self.execute(ApiRequest("POST", self._api_url(endpoint), json=payload))
        return self._decode(response, endpoint)

    def _content_upload(self, endpoint: str, arg: Dict[str, Any], data: bytes) -> Dict[str, Any]:
        """POST raw bytes to a content endpoint, the arguments travel in a header."""
        request = ApiRequest(
            "POST",
            self._content_url(endpoint),
            headers={
                "Dropbox-API-Arg": json.dumps(arg),
                "Content-Type": "application/octet-stream",
            },
            body=data,
        )
        return self._decode(self.execute(request), endpoint)

    @staticmethod
    def _decode(response: ApiResponse, endpoint: str) -> Dict[str, Any]:
        if not response.body:
            return {}
        try:
            data = response.json()
        except ValueError as ex:
            raise RemoteIOException(
                f"Could not parse the response sent by Dropbox for {endpoint}"
            ) from ex
        # append_v2 answers with a literal null
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise RemoteIOException(
                f"Unexpected {type(data).__name__} response sent by Dropbox for {endpoint}"
            )
        return data

    # Metadata

    def get_metadata(self, path: str) -> Dict[str, Any]:
        """Raw metadata document of a non-root path."""
        return self._rpc("files/get_metadata", {"path": to_api_path(path)})

    # Namespace operations

    def create_folder(self, path: str) -> Dict[str, Any]:
        return self._rpc("files/create_folder_v2", {"path": path, "autorename": False})

    def delete(self, path: str) -> Dict[str, Any]:
        return self._rpc("files/delete_v2", {"path": path})

    def move(self, from_path: str, to_path: str) -> Dict[str, Any]:
        return self._rpc(
            "files/move_v2",
            {"from_path": from_path, "to_path": to_path, "autorename": False},
        )

    # Listing

    def list_folder(self, path: str) -> ListFolderResult:
        """First page of a folder listing."""
        data = self._rpc("files/list_folder", {"path": to_api_path(path), "recursive": False})
        return self._list_result(data)

    def list_folder_continue(self, cursor: str) -> ListFolderResult:
        """Continuation page for a cursor returned by a previous page."""
        data = self._rpc("files/list_folder/continue", {"cursor": cursor})
        return self._list_result(data)

    @staticmethod
    def _list_result(data: Dict[str, Any]) -> ListFolderResult:
        entries = data.get("entries")
        if not isinstance(entries, list):
            raise RemoteIOException("The response didn't include 'entries'")
        return ListFolderResult(
            entries=entries,
            cursor=data.get("cursor"),
            has_more=bool(data.get("has_more", False)),
        )

    # Content

    def download_range(self, file_ref: str, offset: int, size: int) -> bytes:
        """
        Ranged download of ``size`` bytes at ``offset``.

        ``file_ref`` is a path or an ``id:`` reference. The response may be
        shorter than ``size`` near the end of the file, never longer.
        """
        query: List[Tuple[str, str]] = [("arg", json.dumps({"path": file_ref}))]
        request = ApiRequest(
            "GET",
            self._content_url("files/download"),
            query=query,
            byte_range=(offset, size),
        )
        return self.execute(request, max_size=size).body

    def upload_session_start(self) -> str:
        """Open an upload session and return its id."""
        data = self._content_upload("files/upload_session/start", {"close": False}, b"")
        session_id = data.get("session_id")
        if not session_id:
            raise RemoteIOException("Upload session start did not return a session id")
        return session_id

    def upload_session_append(self, session_id: str, offset: int, data: bytes) -> None:
        self._content_upload(
            "files/upload_session/append_v2",
            {"cursor": {"session_id": session_id, "offset": offset}, "close": False},
            data,
        )

    def upload_session_finish(self, session_id: str, offset: int, path: str) -> Dict[str, Any]:
        """Commit the session to ``path``; 'add' mode never overwrites an existing file."""
        arg = {
            "cursor": {"session_id": session_id, "offset": offset},
            "commit": {"path": path, "mode": "add", "autorename": False, "mute": False},
        }
        return self._content_upload("files/upload_session/finish", arg, b"")

    def close(self) -> None:
        """Close the client and cleanup resources."""
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
