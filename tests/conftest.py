"""Pytest configuration and an in-memory Dropbox API served through httpx.MockTransport."""

import json
import os
import sys
from typing import Any, Dict, List, Optional

import httpx
import pytest

# Add src/ to Python path so tests can import dropboxfs without installing it
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from dropboxfs import ClientConfig, DropboxClient, DropboxFileSystem, OAuth2Credentials  # noqa: E402

MODIFIED = "2015-05-12T15:50:38Z"


def _not_found() -> httpx.Response:
    return httpx.Response(
        409,
        json={
            "error_summary": "path/not_found/..",
            "error": {".tag": "path", "path": {".tag": "not_found"}},
        },
    )


def _conflict() -> httpx.Response:
    return httpx.Response(
        409,
        json={
            "error_summary": "path/conflict/file/..",
            "error": {".tag": "path", "path": {".tag": "conflict", "conflict": {".tag": "file"}}},
        },
    )


class FakeDropbox:
    """Tiny stateful stand-in for the Dropbox v2 endpoints used by dropboxfs."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.folders = {"/"}
        self.sessions: Dict[str, bytearray] = {}
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, httpx.Response] = {}
        self.page_size = 100
        self.ignore_range = False

    # Helpers for tests

    def add_file(self, path: str, data: bytes) -> None:
        self.files[path] = data

    def add_folder(self, path: str) -> None:
        self.folders.add(path)

    def fail(self, endpoint: str, status: int, body: Optional[Any] = None) -> None:
        if body is None:
            self.failures[endpoint] = httpx.Response(status)
        elif isinstance(body, (bytes, str)):
            self.failures[endpoint] = httpx.Response(status, content=body)
        else:
            self.failures[endpoint] = httpx.Response(status, json=body)

    def calls(self, endpoint: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"/2/{endpoint}"]

    # Documents

    def _key(self, path: str) -> str:
        if path == "":
            return "/"
        if path.startswith("id:"):
            return path[3:]
        return path

    def _metadata(self, path: str) -> Optional[Dict[str, Any]]:
        name = path.rsplit("/", 1)[-1]
        if path in self.folders:
            return {".tag": "folder", "name": name, "path_display": path, "id": f"id:{path}"}
        if path in self.files:
            return {
                ".tag": "file",
                "name": name,
                "path_display": path,
                "id": f"id:{path}",
                "size": len(self.files[path]),
                "server_modified": MODIFIED,
            }
        return None

    def _children(self, folder: str) -> List[Dict[str, Any]]:
        prefix = folder.rstrip("/") + "/"
        names = sorted(
            p for p in (self.folders | set(self.files))
            if p != folder and p.startswith(prefix) and "/" not in p[len(prefix):]
        )
        return [self._metadata(p) for p in names]

    def _page(self, folder: str, start: int) -> httpx.Response:
        children = self._children(folder)
        end = start + self.page_size
        has_more = end < len(children)
        return httpx.Response(
            200,
            json={
                "entries": children[start:end],
                "cursor": f"{folder}|{end}",
                "has_more": has_more,
            },
        )

    # Dispatch

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path[len("/2/"):]
        if endpoint in self.failures:
            return self.failures[endpoint]

        if "Dropbox-API-Arg" in request.headers:
            arg = json.loads(request.headers["Dropbox-API-Arg"])
        elif "arg" in request.url.params:
            arg = json.loads(request.url.params["arg"])
        elif request.content:
            arg = json.loads(request.content)
        else:
            arg = {}

        method = getattr(self, "_" + endpoint.replace("/", "_"))
        return method(request, arg)

    def _files_get_metadata(self, request, arg):
        doc = self._metadata(self._key(arg["path"]))
        return httpx.Response(200, json=doc) if doc else _not_found()

    def _files_list_folder(self, request, arg):
        folder = self._key(arg["path"])
        if folder not in self.folders:
            return _not_found()
        return self._page(folder, 0)

    def _files_list_folder_continue(self, request, arg):
        folder, start = arg["cursor"].rsplit("|", 1)
        return self._page(folder, int(start))

    def _files_create_folder_v2(self, request, arg):
        path = arg["path"]
        if path in self.folders or path in self.files:
            return _conflict()
        self.folders.add(path)
        return httpx.Response(200, json={"metadata": self._metadata(path)})

    def _files_delete_v2(self, request, arg):
        path = arg["path"]
        doc = self._metadata(path)
        if doc is None:
            return _not_found()
        self.files.pop(path, None)
        self.folders.discard(path)
        return httpx.Response(200, json={"metadata": doc})

    def _files_move_v2(self, request, arg):
        src, dst = arg["from_path"], arg["to_path"]
        if src in self.files:
            self.files[dst] = self.files.pop(src)
        elif src in self.folders:
            self.folders.discard(src)
            self.folders.add(dst)
        else:
            return _not_found()
        return httpx.Response(200, json={"metadata": self._metadata(dst)})

    def _files_download(self, request, arg):
        path = self._key(arg["path"])
        if path not in self.files:
            return _not_found()
        data = self.files[path]
        range_header = request.headers.get("Range")
        if not range_header or self.ignore_range:
            return httpx.Response(200, content=data)
        first, last = range_header[len("bytes="):].split("-")
        return httpx.Response(206, content=data[int(first):int(last) + 1])

    def _files_upload_session_start(self, request, arg):
        session_id = f"session-{len(self.sessions) + 1}"
        self.sessions[session_id] = bytearray(request.content)
        return httpx.Response(200, json={"session_id": session_id})

    def _files_upload_session_append_v2(self, request, arg):
        cursor = arg["cursor"]
        buffer = self.sessions[cursor["session_id"]]
        if cursor["offset"] != len(buffer):
            return httpx.Response(
                409,
                json={"error": {".tag": "incorrect_offset", "correct_offset": len(buffer)}},
            )
        buffer.extend(request.content)
        return httpx.Response(200, content=b"null")

    def _files_upload_session_finish(self, request, arg):
        cursor, commit = arg["cursor"], arg["commit"]
        buffer = self.sessions[cursor["session_id"]]
        path = commit["path"]
        if path in self.files or path in self.folders:
            return _conflict()
        self.files[path] = bytes(buffer)
        return httpx.Response(200, json=self._metadata(path))


@pytest.fixture
def fake() -> FakeDropbox:
    return FakeDropbox()


@pytest.fixture
def credentials() -> OAuth2Credentials:
    return OAuth2Credentials(app_key="app-key", app_secret="app-secret", access_token="token-abc")


@pytest.fixture
def client(fake, credentials):
    with DropboxClient(credentials, transport=httpx.MockTransport(fake.handler)) as c:
        yield c


@pytest.fixture
def fs(client) -> DropboxFileSystem:
    return DropboxFileSystem(client)


@pytest.fixture
def modern_fs(fake, credentials):
    config = ClientConfig(legacy_seek_end=False)
    with DropboxClient(credentials, config=config, transport=httpx.MockTransport(fake.handler)) as c:
        yield DropboxFileSystem(c)
