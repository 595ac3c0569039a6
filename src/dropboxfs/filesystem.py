"""
POSIX-like filesystem operations on top of the Dropbox API
"""

import errno
import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ._url import extract_path
from .client import DropboxClient
from .error import (
    ConflictException,
    InvalidArgumentException,
    NotFoundException,
    PermissionDeniedException,
    prefixed_errors,
)
from .listing import DirectoryLister
from .metadata import map_metadata, root_metadata
from .models import DirectoryEntry, FileMetadata
from .upload import UploadSession

logger = logging.getLogger(__name__)


@dataclass
class FileHandle:
    """Per-descriptor state of an open file. Owned by a single caller."""
    url: str
    path: str
    flags: int
    file_ref: Optional[str] = None
    size: int = 0
    offset: int = 0
    upload: Optional[UploadSession] = None
    closed: bool = False

    @property
    def readable(self) -> bool:
        return self.flags == os.O_RDONLY

    @property
    def writable(self) -> bool:
        return self.flags == os.O_WRONLY


def _path(url: str) -> str:
    path = extract_path(url)
    return path.rstrip("/") or "/"


class DropboxFileSystem:
    """
    Filesystem contract (stat, mkdir, rmdir, unlink, rename, opendir,
    readdir, closedir, open, read, write, seek, close) for ``dropbox://``
    URLs. Every failure is a DropboxFSException prefixed with the
    operation name.
    """

    def __init__(self, client: DropboxClient):
        self._client = client
        self.legacy_seek_end = client.config.legacy_seek_end

    #
    # Namespace operations
    #

    @prefixed_errors("stat")
    def stat(self, url: str) -> FileMetadata:
        return self._metadata(_path(url))

    def _metadata(self, path: str) -> FileMetadata:
        if path == "/":
            return root_metadata()
        return map_metadata(self._client.get_metadata(path))

    @prefixed_errors("mkdir")
    def mkdir(self, url: str) -> None:
        path = _path(url)
        try:
            self._metadata(path)
        except NotFoundException:
            pass
        else:
            raise ConflictException("The directory already exists")
        self._client.create_folder(path)

    @prefixed_errors("rmdir")
    def rmdir(self, url: str) -> None:
        self._remove(_path(url))

    @prefixed_errors("unlink")
    def unlink(self, url: str) -> None:
        self._remove(_path(url))

    def _remove(self, path: str) -> None:
        # delete_v2 is recursive for folders
        self._metadata(path)
        self._client.delete(path)

    @prefixed_errors("rename")
    def rename(self, old_url: str, new_url: str) -> None:
        from_path = _path(old_url)
        to_path = _path(new_url)
        self._metadata(from_path)
        self._client.move(from_path, to_path)

    #
    # Directory listing
    #

    @prefixed_errors("opendir")
    def opendir(self, url: str) -> DirectoryLister:
        return DirectoryLister.open(self._client, _path(url))

    @prefixed_errors("readdir")
    def readdir(self, handle: DirectoryLister) -> Optional[DirectoryEntry]:
        return handle.next()

    @prefixed_errors("readdirpp")
    def readdirpp(self, handle: DirectoryLister) -> Optional[Tuple[DirectoryEntry, Dict[str, int]]]:
        """readdir plus the entry's stat fields, without an extra request."""
        entry = handle.next()
        if entry is None:
            return None
        return entry, entry.to_metadata().to_stat_dict()

    def closedir(self, handle: DirectoryLister) -> None:
        handle.close()

    #
    # File operations
    #

    @prefixed_errors("open")
    def open(self, url: str, flags: int = os.O_RDONLY) -> FileHandle:
        access = flags & os.O_ACCMODE
        if access == os.O_RDWR:
            raise InvalidArgumentException(
                "Only support read-only or write-only", errno=errno.EISDIR
            )

        path = _path(url)
        metadata: Optional[FileMetadata] = None
        try:
            metadata = self._metadata(path)
        except NotFoundException:
            if not (access == os.O_WRONLY and flags & os.O_CREAT):
                raise
        if metadata is not None and metadata.is_directory:
            raise InvalidArgumentException("Can not open a directory", errno=errno.EISDIR)

        handle = FileHandle(url=url, path=path, flags=access)
        if access == os.O_RDONLY:
            handle.file_ref = metadata.file_id or path
            handle.size = metadata.size_bytes
        else:
            handle.upload = UploadSession(self._client, path)
            handle.upload.start()
        logger.debug("[DropboxFS][Open] path=%s flags=%s size=%s", path, access, handle.size)
        return handle

    @prefixed_errors("read")
    def read(self, handle: FileHandle, count: int) -> bytes:
        """
        Read up to ``count`` bytes at the handle's offset.
        Returns b"" at or past the end of the file.
        """
        self._check_open(handle)
        if not handle.readable:
            raise InvalidArgumentException("Can not read a file open for write", errno=errno.EBADF)
        if count <= 0 or handle.offset >= handle.size:
            return b""
        data = self._client.download_range(handle.file_ref, handle.offset, count)
        handle.offset += len(data)
        return data

    @prefixed_errors("write")
    def write(self, handle: FileHandle, data: bytes) -> int:
        self._check_open(handle)
        if not handle.writable:
            raise InvalidArgumentException("Can not write a file open for read", errno=errno.EBADF)
        written = handle.upload.append(data)
        handle.offset = handle.upload.offset
        return written

    @prefixed_errors("seek")
    def seek(self, handle: FileHandle, offset: int, whence: int = os.SEEK_SET) -> int:
        """
        Move the read offset and return it.

        SEEK_END lands on ``size + offset - 1`` while ``legacy_seek_end`` is
        set, ``size + offset`` otherwise.
        """
        self._check_open(handle)
        if not handle.readable:
            raise PermissionDeniedException(
                "Seek is only allowed for read file descriptors", errno=errno.EPERM
            )

        if whence == os.SEEK_SET:
            new_offset = offset
        elif whence == os.SEEK_CUR:
            new_offset = handle.offset + offset
        elif whence == os.SEEK_END:
            new_offset = handle.size + offset
            if self.legacy_seek_end:
                new_offset -= 1
        else:
            raise InvalidArgumentException("Invalid value for whence")

        if new_offset < 0:
            raise InvalidArgumentException(f"Invalid resulting offset {new_offset}")
        handle.offset = new_offset
        return new_offset

    @prefixed_errors("close")
    def close(self, handle: FileHandle) -> None:
        """Release the handle; a write handle commits its upload session first."""
        self._check_open(handle)
        handle.closed = True
        if handle.writable:
            handle.upload.finish()

    @staticmethod
    def _check_open(handle: FileHandle) -> None:
        if handle.closed:
            raise InvalidArgumentException("File handle is closed", errno=errno.EBADF)
