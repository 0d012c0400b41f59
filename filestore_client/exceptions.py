"""Error type shared by the filestore client and its transports."""

from enum import Enum
from typing import Optional, Union


class ErrorCode(str, Enum):
    """
    String tags carried in the ``code`` or ``message`` of a FileStoreClientError.
    """
    NO_SERVICE_SECRET = "ENOSERVICESECRET"
    NO_SERVICE_TOKEN = "ENOSERVICETOKEN"
    NO_SERVICE_SLUG = "ENOSERVICESLUG"
    NO_MICROSERVICE_URL = "ENOMICROSERVICEURL"
    INVALID_OPTIONS = "EINVALIDOPTIONS"
    NO_FINGERPRINT = "ENOFINGERPRINT"
    CONNECTION_REFUSED = "ECONNREFUSED"
    DNS_NOT_FOUND = "ENOTFOUND"
    TIMED_OUT = "ETIMEDOUT"
    UNSPECIFIED = "EUNSPECIFIED"
    NO_ERROR = "ENOERROR"


class FileStoreClientError(Exception):
    """
    Raised for every failure the client reports.

    Configuration errors carry a string ``code`` (e.g. ENOSERVICESECRET) and a
    human readable message. Request errors carry the HTTP-like status as
    ``code`` and the error tag as ``message`` (e.g. 500 / ENOFINGERPRINT).
    """

    name = "FileStoreClientError"

    def __init__(self, code: Union[int, str], message: str):
        if isinstance(code, ErrorCode):
            code = code.value
        if isinstance(message, ErrorCode):
            message = message.value
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def status(self) -> Optional[int]:
        """HTTP-like status for request errors, None for configuration errors."""
        return self.code if isinstance(self.code, int) else None

    def __repr__(self) -> str:
        return f"{self.name}(code={self.code!r}, message={self.message!r})"
