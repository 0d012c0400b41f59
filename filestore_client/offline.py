"""Stub transport for running without a live filestore service."""

import time
import uuid
from datetime import datetime, timezone
from typing import Dict, Tuple

from filestore_client.common.constants import FETCH_ENDPOINT, STORE_ENDPOINT
from filestore_client.common.logging_config import get_logger
from filestore_client.transport import BaseTransport

default_logger = get_logger(__name__)

OFFLINE_SECRET = "offline-service-secret"
OFFLINE_TOKEN = "offline-service-token"
OFFLINE_BASE_URL = "http://localhost"


class OfflineTransport(BaseTransport):
    """
    Transport that answers store and fetch requests in memory.

    Stored files live only as long as the transport instance.
    """

    def __init__(
        self,
        service_secret: str = OFFLINE_SECRET,
        service_token: str = OFFLINE_TOKEN,
        base_url: str = OFFLINE_BASE_URL
    ):
        super().__init__(service_secret, service_token, base_url)
        self._files: Dict[Tuple[str, str], str] = {}

    async def send_get(self, url, context, payload=None, logger=None):
        log = logger or default_logger
        if url != FETCH_ENDPOINT:
            self.throw_request_error(404, "404")

        key = (str(context.get('userId')), str(context.get('fingerprint')))
        if key not in self._files:
            log.warning(f"Offline fetch miss: fingerprint={key[1]}")
            self.throw_request_error(404, "404")

        log.debug(f"Offline fetch: fingerprint={key[1]}")
        return {'file': self._files[key]}

    async def send_post(self, url, context, payload=None, logger=None):
        log = logger or default_logger
        if url != STORE_ENDPOINT:
            self.throw_request_error(404, "404")

        payload = payload or {}
        fingerprint = str(uuid.uuid4())
        self._files[(str(context.get('userId')), fingerprint)] = payload.get('file', '')

        now = time.time()
        log.debug(f"Offline store: fingerprint={fingerprint}")
        return {
            'fingerprint': fingerprint,
            'date': datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
            'timestamp': int(now * 1000),
        }
