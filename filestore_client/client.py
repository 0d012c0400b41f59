"""Client for storing and fetching user files in the user filestore service."""

import base64
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import aiofiles

from filestore_client.common.constants import FETCH_ENDPOINT, STORE_ENDPOINT
from filestore_client.common.logging_config import get_logger
from filestore_client.common.types import ClientConfig
from filestore_client.config import ClientOptions
from filestore_client.exceptions import ErrorCode, FileStoreClientError
from filestore_client.offline import OfflineTransport
from filestore_client.transport import BaseTransport, JWTTransport

logger = get_logger(__name__)

FileContent = Union[bytes, bytearray, memoryview, str]


def _encode_file(file: FileContent) -> str:
    """Normalise file content to bytes and return its base64 text."""
    if isinstance(file, str):
        file = file.encode('utf-8')
    elif not isinstance(file, (bytes, bytearray, memoryview)):
        raise TypeError(f"File content must be str or bytes-like, not {type(file).__name__}")
    return base64.b64encode(bytes(file)).decode('ascii')


class FileStoreClient:
    """
    Stores and fetches user files through a signing transport.

    The instance holds only immutable configuration, so one client can serve
    concurrent calls.
    """

    def __init__(
        self,
        service_secret: str,
        service_token: str,
        service_slug: str,
        base_url: str,
        options: Union[ClientOptions, Mapping[str, Any], None] = None,
        transport: Optional[BaseTransport] = None
    ):
        """
        Initialize filestore client.

        Args:
            service_secret: Secret used to encrypt user identities
            service_token: Key used to sign access tokens
            service_slug: Slug of the calling service
            base_url: User filestore URL
            options: Optional defaults (max_size in bytes, expires such as '28d', timeout)
            transport: Optional transport; a JWTTransport is built if omitted

        Raises:
            FileStoreClientError: If a required argument is missing or options are invalid
        """
        if not service_secret:
            raise FileStoreClientError(ErrorCode.NO_SERVICE_SECRET, "No service secret passed to client")
        if not service_token:
            raise FileStoreClientError(ErrorCode.NO_SERVICE_TOKEN, "No service token passed to client")
        if not service_slug:
            raise FileStoreClientError(ErrorCode.NO_SERVICE_SLUG, "No service slug passed to client")
        if not base_url:
            raise FileStoreClientError(ErrorCode.NO_MICROSERVICE_URL, "No microservice url passed to client")

        options = ClientOptions.from_mapping(options)

        self._config = ClientConfig(
            service_secret=service_secret,
            service_token=service_token,
            service_slug=service_slug,
            base_url=base_url,
            max_size=options.effective_max_size,
            expires=options.effective_expires,
        )
        if transport is None:
            transport = JWTTransport(
                service_secret,
                service_token,
                base_url,
                timeout=options.effective_timeout
            )
        self._transport = transport

        logger.info(f"Initialized FileStoreClient [service_slug={service_slug}, base_url={base_url}]")

    @classmethod
    def offline(
        cls,
        service_slug: str = "offline",
        options: Union[ClientOptions, Mapping[str, Any], None] = None
    ) -> "FileStoreClient":
        """
        Create a client that never contacts the filestore service.

        Store calls resolve locally with a generated fingerprint; files stored
        this way can be fetched back from the same client.
        """
        transport = OfflineTransport()
        logger.info(f"Using offline filestore transport [service_slug={service_slug}]")
        return cls(
            transport.service_secret,
            transport.service_token,
            service_slug,
            transport.base_url,
            options=options,
            transport=transport
        )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        transport: Optional[BaseTransport] = None
    ) -> "FileStoreClient":
        """
        Create a client from SERVICE_SECRET, SERVICE_TOKEN, SERVICE_SLUG,
        USER_FILESTORE_URL and the USER_FILESTORE_* option variables.
        """
        environ = os.environ if environ is None else environ
        return cls(
            environ.get('SERVICE_SECRET'),
            environ.get('SERVICE_TOKEN'),
            environ.get('SERVICE_SLUG'),
            environ.get('USER_FILESTORE_URL'),
            options=ClientOptions.from_env(environ),
            transport=transport
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def transport(self) -> BaseTransport:
        return self._transport

    @property
    def service_secret(self) -> str:
        return self._config.service_secret

    @property
    def service_token(self) -> str:
        return self._config.service_token

    @property
    def service_slug(self) -> str:
        return self._config.service_slug

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def max_size(self) -> int:
        return self._config.max_size

    @property
    def expires(self) -> Union[str, int]:
        return self._config.expires

    def get_fetch_url(self, user_id: str, fingerprint: str) -> str:
        """
        Build the URL of a stored user file.

        Args:
            user_id: User ID
            fingerprint: File fingerprint

        Returns:
            Fully resolved fetch endpoint URL
        """
        context = {'serviceSlug': self.service_slug, 'userId': user_id, 'fingerprint': fingerprint}
        return self._transport.create_endpoint_url(FETCH_ENDPOINT, context)

    async def fetch(self, args: Mapping[str, Any], logger: Optional[logging.Logger] = None) -> str:
        """
        Fetch user file.

        Args:
            args: Mapping with user_id, user_token and fingerprint
            logger: Optional logger passed through to the transport

        Returns:
            Decoded file content (invalid UTF-8 sequences become U+FFFD)
        """
        user_id = args['user_id']
        fingerprint = args['fingerprint']

        encrypted_user_id_and_token = self._transport.encrypt_user_id_and_token(user_id, args['user_token'])

        json = await self._transport.send_get(
            url=FETCH_ENDPOINT,
            context={'serviceSlug': self.service_slug, 'userId': user_id, 'fingerprint': fingerprint},
            payload={'encrypted_user_id_and_token': encrypted_user_id_and_token},
            logger=logger
        )
        return base64.b64decode(json['file']).decode('utf-8', errors='replace')

    def _build_policy(self, policy: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        policy = dict(policy or {})
        if not policy.get('max_size'):
            policy['max_size'] = self.max_size
        if not policy.get('expires'):
            policy['expires'] = self.expires
        if 'allowed_types' in policy and not policy['allowed_types']:
            del policy['allowed_types']
        return policy

    async def store(self, args: Mapping[str, Any], logger: Optional[logging.Logger] = None) -> Dict[str, Any]:
        """
        Store user file.

        Args:
            args: Mapping with user_id, user_token, file (bytes or str) and an
                optional policy (max_size, expires, allowed_types)
            logger: Optional logger passed through to the transport

        Returns:
            Result from the filestore, always including a fingerprint

        Raises:
            FileStoreClientError: 500 / ENOFINGERPRINT if no fingerprint is returned
            TypeError: If file is neither str nor bytes-like
        """
        user_id = args['user_id']
        file = _encode_file(args['file'])
        policy = self._build_policy(args.get('policy'))

        encrypted_user_id_and_token = self._transport.encrypt_user_id_and_token(user_id, args['user_token'])

        result = await self._transport.send_post(
            url=STORE_ENDPOINT,
            context={'serviceSlug': self.service_slug, 'userId': user_id},
            payload={
                'encrypted_user_id_and_token': encrypted_user_id_and_token,
                'file': file,
                'policy': policy,
            },
            logger=logger
        )

        # useless without a fingerprint
        if not isinstance(result, dict) or not result.get('fingerprint'):
            self._transport.throw_request_error(500, ErrorCode.NO_FINGERPRINT.value)
        return result

    async def store_from_path(
        self,
        file_path: Union[str, Path],
        args: Mapping[str, Any],
        logger: Optional[logging.Logger] = None
    ) -> Dict[str, Any]:
        """
        Store user file read from a file path.

        Args:
            file_path: Path to user file
            args: Mapping with user_id, user_token and policy (see store)
            logger: Optional logger passed through to the transport

        Raises:
            OSError: If the file cannot be read
        """
        async with aiofiles.open(file_path, mode='rb') as f:
            content = await f.read()

        return await self.store({**args, 'file': content}, logger)

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "FileStoreClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
