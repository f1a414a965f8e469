"""Konstanter for wkrscan."""

APP_TITLE = "wkrscan"
ROOT_MARKER = "auditfile"
XAF_NAMESPACE = "http://www.auditfiles.nl/XAF/3.2"

DEFAULT_MAX_FILE_BYTES = 100 * 1024 * 1024  # 100 MB
TAG_BALANCE_LIMIT_BYTES = 10 * 1024 * 1024  # 10 MB
STREAM_BUFFER_LIMIT_BYTES = 512 * 1024 * 1024  # 512 MB
PARSE_CHUNK_BYTES = 1024 * 1024

DEFAULT_MEMORY_THRESHOLD = 80.0
DEFAULT_BATCH_SIZE = 1000
DEFAULT_CHUNK_SIZE = 10000
DEFAULT_CONCURRENCY = 4
CHECKPOINT_INTERVAL = 1000
