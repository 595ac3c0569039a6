"""
Session based chunked uploads backing write handles
"""

import enum
import logging
from typing import Optional

from .client import DropboxClient
from .error import DropboxFSException, InvalidArgumentException

logger = logging.getLogger(__name__)


class UploadState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    STARTED = "started"
    APPENDING = "appending"
    FINISHED = "finished"
    ABORTED = "aborted"


class UploadSession:
    """
    Write path state machine:

        UNINITIALIZED -> STARTED -> APPENDING -> FINISHED

    Any failed request while STARTED or APPENDING moves the session to
    ABORTED. An aborted session is never committed; ``finish`` re-raises the
    error that aborted it.

    A session belongs to exactly one write handle and is not thread safe.
    """

    def __init__(self, client: DropboxClient, path: str):
        self._client = client
        self.path = path
        self.session_id: Optional[str] = None
        self.offset = 0
        self.state = UploadState.UNINITIALIZED
        self.error: Optional[DropboxFSException] = None

    @property
    def closed(self) -> bool:
        return self.state in (UploadState.FINISHED, UploadState.ABORTED)

    def _abort(self, ex: DropboxFSException) -> None:
        logger.debug(
            "[DropboxFS][Upload] aborted path=%s session=%s offset=%s",
            self.path,
            self.session_id,
            self.offset,
        )
        self.state = UploadState.ABORTED
        self.error = ex

    def start(self) -> None:
        if self.state is not UploadState.UNINITIALIZED:
            raise InvalidArgumentException(f"Upload session already {self.state.value}")
        self.session_id = self._client.upload_session_start()
        self.offset = 0
        self.state = UploadState.STARTED

    def append(self, data: bytes) -> int:
        """Append ``data`` at the current offset. The whole chunk is assumed accepted."""
        if self.state is UploadState.ABORTED:
            raise self.error
        if self.state not in (UploadState.STARTED, UploadState.APPENDING):
            raise InvalidArgumentException(f"Can not append to a {self.state.value} upload session")
        try:
            self._client.upload_session_append(self.session_id, self.offset, bytes(data))
        except DropboxFSException as ex:
            self._abort(ex)
            raise
        self.offset += len(data)
        self.state = UploadState.APPENDING
        return len(data)

    def finish(self) -> None:
        """Commit the uploaded bytes to ``path`` without overwriting."""
        if self.state is UploadState.ABORTED:
            raise self.error
        if self.state not in (UploadState.STARTED, UploadState.APPENDING):
            raise InvalidArgumentException(f"Can not finish a {self.state.value} upload session")
        try:
            self._client.upload_session_finish(self.session_id, self.offset, self.path)
        except DropboxFSException as ex:
            self._abort(ex)
            raise
        self.state = UploadState.FINISHED
        logger.debug(
            "[DropboxFS][Upload] committed path=%s bytes=%s", self.path, self.offset
        )
