from __future__ import annotations

PROTOCOL_VERSION = 1

# wire kind tags
KIND_DIRECTORY = 0
KIND_FILE = 1
KIND_SENTINEL = 2

KIND_FORMAT = "!B"
PATH_LEN_FORMAT = "!I"
FILE_SIZE_FORMAT = "!Q"

PATH_SEPARATOR = "/"
MAX_PATH_BYTES = 4096
CHUNK_SIZE = 64 * 1024

DEFAULT_PORT = 5555
DEFAULT_DIRECTORY = "."
DEFAULT_BIND_HOST = "0.0.0.0"
