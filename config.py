"""Configuration constants for the ArcadiaWaves HTTP server."""

HOST: str = "127.0.0.1"
PORT: int = 8080
SERVER_NAME: str = "ArcadiaWaves/1.0"
LOG_FILE_PATH: str = "webserver.log"
ENABLE_ADMIN: bool = True
JSON_INDENT: int = 2
BUFFER_SIZE: int = 1024
READ_CHUNK_SIZE: int = 8192
SOCKET_TIMEOUT_SECS: int = 5
MAX_REQUEST_BYTES: int = 1_048_576
MAX_HEADER_BYTES: int = 16_384
MAX_BODY_BYTES: int = 524_288
MAX_TARGET_LENGTH: int = 2048
WORKER_COUNT: int = 8
REQUEST_QUEUE_SIZE: int = 64
DRAIN_TIMEOUT_SECS: float = 5.0
SELECT_TIMEOUT_SECS: float = 0.2
