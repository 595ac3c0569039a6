"""
dropboxfs - POSIX-like filesystem operations over the Dropbox HTTP API
"""

__version__ = "1.0.0"

from .client import DropboxClient
from .config import (
    ClientConfig,
    Credentials,
    OAuth1Credentials,
    OAuth2Credentials,
    load_credentials,
    load_credentials_from_env,
)
from .filesystem import DropboxFileSystem, FileHandle
from .listing import DirectoryLister
from .models import (
    ApiRequest,
    ApiResponse,
    DirectoryEntry,
    FileMetadata,
    ListFolderResult,
)
from .upload import UploadSession, UploadState
from .error import (
    ErrorKind,
    DropboxFSException,
    InvalidArgumentException,
    PermissionDeniedException,
    NotFoundException,
    ConflictException,
    RateLimitedException,
    RemoteIOException,
)

__all__ = [
    "DropboxClient",
    "DropboxFileSystem",
    "FileHandle",
    "DirectoryLister",
    "UploadSession",
    "UploadState",
    "ClientConfig",
    "Credentials",
    "OAuth1Credentials",
    "OAuth2Credentials",
    "load_credentials",
    "load_credentials_from_env",
    "ApiRequest",
    "ApiResponse",
    "DirectoryEntry",
    "FileMetadata",
    "ListFolderResult",
    "ErrorKind",
    "DropboxFSException",
    "InvalidArgumentException",
    "PermissionDeniedException",
    "NotFoundException",
    "ConflictException",
    "RateLimitedException",
    "RemoteIOException",
]
