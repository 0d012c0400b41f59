"""Configuration management for the filestore client."""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from filestore_client.common.constants import (
    DEFAULT_EXPIRES,
    DEFAULT_MAX_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    ENV_PREFIX,
)
from filestore_client.exceptions import ErrorCode, FileStoreClientError


class ClientOptions(BaseModel):
    """
    Optional client settings. Unset (or falsy) values fall back to defaults.

    Accepts both snake_case and camelCase keys (``max_size`` / ``maxSize``).
    """

    model_config = ConfigDict(populate_by_name=True, extra='ignore', frozen=True)

    max_size: Optional[int] = Field(default=None, alias='maxSize', ge=0)
    expires: Optional[Union[int, str]] = None
    timeout: Optional[float] = Field(default=None, gt=0)

    @property
    def effective_max_size(self) -> int:
        return self.max_size or DEFAULT_MAX_SIZE_BYTES

    @property
    def effective_expires(self) -> Union[int, str]:
        return self.expires or DEFAULT_EXPIRES

    @property
    def effective_timeout(self) -> float:
        return self.timeout or DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_mapping(cls, options: Union["ClientOptions", Mapping[str, Any], None]) -> "ClientOptions":
        """
        Build options from a mapping, passing ClientOptions through untouched.

        Raises:
            FileStoreClientError: EINVALIDOPTIONS if a value fails validation
        """
        if isinstance(options, ClientOptions):
            return options
        try:
            return cls.model_validate(dict(options or {}))
        except ValidationError as e:
            raise FileStoreClientError(ErrorCode.INVALID_OPTIONS, f"Invalid client options: {e}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientOptions":
        """
        Build options from USER_FILESTORE_MAX_SIZE, USER_FILESTORE_EXPIRES
        and USER_FILESTORE_TIMEOUT.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for key in ('max_size', 'expires', 'timeout'):
            value = environ.get(f"{ENV_PREFIX}{key.upper()}")
            if value:
                values[key] = value
        return cls.from_mapping(values)

    @classmethod
    def from_file(cls, config_path: Path) -> "ClientOptions":
        """
        Load options from a JSON file. A missing file yields defaults.

        Args:
            config_path: Path to config JSON file

        Raises:
            FileStoreClientError: EINVALIDOPTIONS if the file is not a JSON object
        """
        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise FileStoreClientError(
                ErrorCode.INVALID_OPTIONS, f"Invalid JSON in {config_path}: {e}"
            ) from e

        if not isinstance(data, dict):
            raise FileStoreClientError(ErrorCode.INVALID_OPTIONS, f"Expected a JSON object in {config_path}")
        return cls.from_mapping(data)
