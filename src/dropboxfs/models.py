"""
Data models for dropboxfs
"""

import json
import stat
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class ApiRequest:
    """
    One request to the remote API, built by the caller and consumed by a
    single HttpClient.execute call.

    ``query`` is the exact list of parameters that gets signed and appended
    to the URL.
    """
    method: str
    url: str
    query: List[Tuple[str, str]] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    json: Optional[Any] = None
    byte_range: Optional[Tuple[int, int]] = None

    def range_header(self) -> Optional[str]:
        """Range header value for (offset, size), if one was requested."""
        if self.byte_range is None:
            return None
        offset, size = self.byte_range
        if not (offset or size):
            return None
        return f"bytes={offset}-{offset + size - 1}"


@dataclass
class ApiResponse:
    """Represents a completed response."""
    status_code: int
    body: bytes = b""
    content_length: int = 0

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass
class FileMetadata:
    """Represents the stat-relevant fields of a remote entry."""
    exists: bool = True
    is_directory: bool = False
    size_bytes: int = 0
    modified_time: Optional[datetime] = None
    path_display: Optional[str] = None
    file_id: Optional[str] = None

    def to_stat_dict(self) -> Dict[str, int]:
        """Translate into os.stat_result style fields."""
        mode = 0o700 | (stat.S_IFDIR if self.is_directory else stat.S_IFREG)
        mtime = int(self.modified_time.timestamp()) if self.modified_time else 0
        return {
            "st_mode": mode,
            "st_size": self.size_bytes,
            "st_mtime": mtime,
        }


@dataclass
class DirectoryEntry:
    """Represents one entry of a directory listing."""
    name: str
    is_directory: bool = False
    size_bytes: int = 0
    modified_time: Optional[datetime] = None

    def to_metadata(self) -> FileMetadata:
        return FileMetadata(
            exists=True,
            is_directory=self.is_directory,
            size_bytes=self.size_bytes,
            modified_time=self.modified_time,
        )


@dataclass
class ListFolderResult:
    """Represents one page of a folder listing."""
    entries: List[Dict[str, Any]] = field(default_factory=list)
    cursor: Optional[str] = None
    has_more: bool = False
