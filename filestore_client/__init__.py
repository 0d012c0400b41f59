"""Client library for the user filestore service."""

from filestore_client.client import FileStoreClient
from filestore_client.config import ClientOptions
from filestore_client.exceptions import ErrorCode, FileStoreClientError
from filestore_client.offline import OfflineTransport
from filestore_client.transport import BaseTransport, JWTTransport, map_request_error

__all__ = [
    "FileStoreClient",
    "ClientOptions",
    "ErrorCode",
    "FileStoreClientError",
    "OfflineTransport",
    "BaseTransport",
    "JWTTransport",
    "map_request_error",
]
