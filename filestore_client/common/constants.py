"""Project-wide constants (default upload policy, endpoints, headers)."""

DEFAULT_MAX_SIZE_BYTES: int = 10 * 1024 * 1024  # 10 MiB default upload cap
DEFAULT_EXPIRES: str = "28d"
DEFAULT_TIMEOUT_SECONDS: float = 30.0

FETCH_ENDPOINT: str = "/service/:serviceSlug/user/:userId/:fingerprint"
STORE_ENDPOINT: str = "/service/:serviceSlug/user/:userId"

ACCESS_TOKEN_HEADER: str = "x-access-token"
GET_PAYLOAD_PARAM: str = "payload"
JWT_ALGORITHM: str = "HS256"

ENV_PREFIX: str = "USER_FILESTORE_"
