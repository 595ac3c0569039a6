"""
Cursor paginated directory enumeration
"""

import logging
from typing import Iterator, List, Optional

from .client import DropboxClient
from .error import InvalidArgumentException, RemoteIOException
from .metadata import TAG_DELETED, map_entry, tag_of
from .models import DirectoryEntry, ListFolderResult

logger = logging.getLogger(__name__)


class DirectoryLister:
    """
    Forward-only, non-restartable iterator over a remote folder.

    Entries of one page keep server order. When a page is exhausted and the
    server reported more, the continuation page is fetched before the
    sequence ends. Pages are fetched lazily, so entries added or removed
    remotely between fetches may be missed or repeated.
    """

    def __init__(self, client: DropboxClient, path: str):
        self._client = client
        self.path = path
        self.cursor_token: Optional[str] = None
        self.has_more = False
        self.entries: List[DirectoryEntry] = []
        self.position = 0
        self.pages = 0
        self._opened = False
        self._closed = False

    @classmethod
    def open(cls, client: DropboxClient, path: str) -> "DirectoryLister":
        """Fetch the first page of ``path``."""
        lister = cls(client, path)
        lister._load(client.list_folder(path))
        lister._opened = True
        return lister

    def _load(self, page: ListFolderResult) -> None:
        if page.has_more and not page.cursor:
            raise RemoteIOException("Listing reports more entries but no cursor")
        self.entries = [map_entry(doc) for doc in page.entries if tag_of(doc) != TAG_DELETED]
        self.position = 0
        self.has_more = page.has_more
        self.cursor_token = page.cursor if page.has_more else None
        self.pages += 1
        logger.debug(
            "[DropboxFS][Listing] path=%s page=%s entries=%s has_more=%s",
            self.path,
            self.pages,
            len(self.entries),
            self.has_more,
        )

    def next(self) -> Optional[DirectoryEntry]:
        """Next entry, or None once every page is exhausted."""
        if self._closed or not self._opened:
            raise InvalidArgumentException("Directory handle is not open")
        while self.position >= len(self.entries):
            if not self.has_more:
                return None
            self._load(self._client.list_folder_continue(self.cursor_token))
        entry = self.entries[self.position]
        self.position += 1
        return entry

    def close(self) -> None:
        self.entries = []
        self.cursor_token = None
        self.has_more = False
        self._closed = True

    def __iter__(self) -> Iterator[DirectoryEntry]:
        return self

    def __next__(self) -> DirectoryEntry:
        entry = self.next()
        if entry is None:
            raise StopIteration
        return entry
