"""
Conversion of remote metadata documents into stat fields
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .error import NotFoundException, RemoteIOException
from .models import DirectoryEntry, FileMetadata

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

TAG_FOLDER = "folder"
TAG_FILE = "file"
TAG_DELETED = "deleted"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse the server's fixed timestamp format as UTC."""
    if not value:
        return None
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except (TypeError, ValueError) as ex:
        raise RemoteIOException(f"Unsupported timestamp {value!r}") from ex


def parse_size(value: Any) -> int:
    if isinstance(value, bool):
        raise RemoteIOException(f"Unsupported size {value!r}")
    try:
        size = int(value)
    except (TypeError, ValueError) as ex:
        raise RemoteIOException(f"Unsupported size {value!r}") from ex
    if size < 0:
        raise RemoteIOException(f"Unsupported size {value!r}")
    return size


def tag_of(doc: Any) -> Optional[str]:
    if not isinstance(doc, dict):
        raise RemoteIOException("Metadata document is not an object")
    return doc.get(".tag")


def map_metadata(doc: Dict[str, Any]) -> FileMetadata:
    """
    Map a metadata document to FileMetadata.

    Raises:
        NotFoundException: the entry has been deleted.
        RemoteIOException: the tag is missing or unknown.
    """
    tag = tag_of(doc)
    if tag == TAG_FOLDER:
        return FileMetadata(
            exists=True,
            is_directory=True,
            path_display=doc.get("path_display"),
            file_id=doc.get("id"),
        )
    if tag == TAG_FILE:
        return FileMetadata(
            exists=True,
            is_directory=False,
            size_bytes=parse_size(doc.get("size", 0)),
            modified_time=parse_timestamp(doc.get("server_modified")),
            path_display=doc.get("path_display"),
            file_id=doc.get("id"),
        )
    if tag == TAG_DELETED:
        raise NotFoundException("The entry has been deleted", error_tag=tag)
    raise RemoteIOException(f"Unsupported metadata tag {tag!r}", error_tag=tag)


def map_entry(doc: Dict[str, Any]) -> DirectoryEntry:
    """Map one listing entry to a DirectoryEntry. Same tag rules as map_metadata."""
    metadata = map_metadata(doc)
    name = doc.get("name")
    if not name:
        path = doc.get("path_display") or doc.get("path_lower") or ""
        name = path.rsplit("/", 1)[-1]
    return DirectoryEntry(
        name=name,
        is_directory=metadata.is_directory,
        size_bytes=metadata.size_bytes,
        modified_time=metadata.modified_time,
    )


def root_metadata() -> FileMetadata:
    """The root folder cannot be queried remotely; it always exists."""
    return FileMetadata(exists=True, is_directory=True, path_display="/")
