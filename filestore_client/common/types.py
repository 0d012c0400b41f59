"""Shared data type definitions (ClientConfig)."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable configuration of a filestore client instance.
    """
    service_secret: str
    service_token: str
    service_slug: str
    base_url: str
    max_size: int
    expires: Union[str, int]
