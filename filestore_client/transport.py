"""Transport capability interface and the signed HTTP transport."""

import base64
import errno
import logging
import re
import socket
from abc import ABC, abstractmethod
from typing import Any, Dict, NoReturn, Optional, Union
from urllib.parse import quote

import httpx

from filestore_client.common.constants import (
    ACCESS_TOKEN_HEADER,
    DEFAULT_TIMEOUT_SECONDS,
    GET_PAYLOAD_PARAM,
)
from filestore_client.common.logging_config import get_logger
from filestore_client.encryption import (
    decrypt,
    encrypt,
    generate_access_token,
    serialize,
)
from filestore_client.exceptions import ErrorCode, FileStoreClientError

logger = get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r':([A-Za-z_][A-Za-z0-9_]*)')

# Low-level error codes with a dedicated status; anything else maps to 500
LOW_LEVEL_STATUS = {
    ErrorCode.CONNECTION_REFUSED.value: 503,
    ErrorCode.DNS_NOT_FOUND.value: 502,
}


def _low_level_code(error: BaseException) -> Optional[str]:
    """
    Walk the exception chain looking for an errno-style code.

    Args:
        error: Exception raised while performing a request

    Returns:
        Code such as ECONNREFUSED, ENOTFOUND or ETIMEDOUT, or None
    """
    seen = set()
    current = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))

        if isinstance(current, socket.gaierror):
            return ErrorCode.DNS_NOT_FOUND.value
        if isinstance(current, (httpx.TimeoutException, TimeoutError)):
            return ErrorCode.TIMED_OUT.value
        if isinstance(current, OSError) and current.errno in errno.errorcode:
            return errno.errorcode[current.errno]

        code = getattr(current, 'code', None)
        if isinstance(code, str) and code:
            return code

        current = current.__cause__ or current.__context__
    return None


def map_request_error(error: Optional[BaseException]) -> FileStoreClientError:
    """
    Normalise a failed request into a FileStoreClientError.

    Args:
        error: Exception raised by the HTTP layer, or None

    Returns:
        Error carrying the status as code and the error tag as message
    """
    if error is None:
        return FileStoreClientError(500, ErrorCode.NO_ERROR)

    if isinstance(error, FileStoreClientError):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return FileStoreClientError(status, str(status))

    code = _low_level_code(error)
    if not code:
        return FileStoreClientError(500, ErrorCode.UNSPECIFIED)

    return FileStoreClientError(LOW_LEVEL_STATUS.get(code, 500), code)


class BaseTransport(ABC):
    """
    Capabilities the filestore client needs from its transport.

    Subclasses provide send_get and send_post; URL building, identity
    encryption and error raising are shared.
    """

    def __init__(self, service_secret: str, service_token: str, base_url: str):
        self.service_secret = service_secret
        self.service_token = service_token
        self.base_url = base_url.rstrip('/')

    def create_endpoint_url(self, template: str, context: Dict[str, Any]) -> str:
        """
        Substitute ``:name`` placeholders in an endpoint template.

        Args:
            template: Path template, e.g. /service/:serviceSlug/user/:userId
            context: Placeholder values

        Returns:
            Absolute URL

        Raises:
            ValueError: If a placeholder has no value in context
        """
        def substitute(match: re.Match) -> str:
            name = match.group(1)
            if context.get(name) is None:
                raise ValueError(f"Missing value for URL parameter '{name}' in {template}")
            return quote(str(context[name]), safe='')

        return f"{self.base_url}{PLACEHOLDER_PATTERN.sub(substitute, template)}"

    def encrypt_user_id_and_token(self, user_id: str, user_token: str) -> str:
        """Encrypt the user id and token with the service secret."""
        return encrypt(self.service_secret, {'userId': user_id, 'userToken': user_token})

    def decrypt_user_id_and_token(self, payload: str) -> Dict[str, str]:
        """Decrypt a value produced by encrypt_user_id_and_token."""
        return decrypt(self.service_secret, payload)

    def throw_request_error(self, code: Union[int, str], message: str) -> NoReturn:
        raise FileStoreClientError(code, message)

    @abstractmethod
    async def send_get(
        self,
        url: str,
        context: Dict[str, Any],
        payload: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None
    ) -> Dict[str, Any]:
        """Perform an authenticated GET and return the decoded JSON body."""

    @abstractmethod
    async def send_post(
        self,
        url: str,
        context: Dict[str, Any],
        payload: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None
    ) -> Dict[str, Any]:
        """Perform an authenticated POST and return the decoded JSON body."""

    async def close(self) -> None:
        """Release any resources held by the transport."""


class JWTTransport(BaseTransport):
    """
    HTTP transport signing every request with a JWT access token.

    GET payloads travel base64-encoded in the ``payload`` query parameter,
    POST payloads as the JSON body. No retries are attempted.
    """

    def __init__(
        self,
        service_secret: str,
        service_token: str,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize the transport.

        Args:
            service_secret: Secret used to encrypt user identities
            service_token: Key used to sign access tokens
            base_url: Filestore service base URL
            timeout: Request timeout in seconds
            http_client: Optional pre-built httpx client (created lazily otherwise)
        """
        super().__init__(service_secret, service_token, base_url)
        self.timeout = timeout
        self._client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send_get(self, url, context, payload=None, logger=None):
        endpoint_url = self.create_endpoint_url(url, context)
        payload = payload or {}
        params = None
        if payload:
            encoded = base64.b64encode(serialize(payload).encode('utf-8')).decode('ascii')
            params = {GET_PAYLOAD_PARAM: encoded}
        return await self._send('GET', endpoint_url, payload, logger, params=params)

    async def send_post(self, url, context, payload=None, logger=None):
        endpoint_url = self.create_endpoint_url(url, context)
        payload = payload or {}
        return await self._send('POST', endpoint_url, payload, logger, json=payload)

    async def _send(
        self,
        method: str,
        endpoint_url: str,
        payload: Dict[str, Any],
        request_logger: Optional[logging.Logger],
        **kwargs
    ) -> Dict[str, Any]:
        log = request_logger or logger
        headers = {ACCESS_TOKEN_HEADER: generate_access_token(payload, self.service_token)}

        log.debug(f"Sending request: {method} {endpoint_url}")

        try:
            response = await self._get_client().request(method, endpoint_url, headers=headers, **kwargs)
            response.raise_for_status()
            result = response.json() if response.content else {}
        except Exception as e:
            error = map_request_error(e)
            log.warning(
                f"Request failed: {method} {endpoint_url} code={error.code} message={error.message}"
            )
            raise error from e

        log.debug(f"Response received: {method} {endpoint_url} status={response.status_code}")
        return result
