"""Worker-level constants shared across modules."""
from __future__ import annotations

DEFAULT_WORKER_COUNT = 3
DEFAULT_POLL_TIMEOUT_SECONDS = 5.0
DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0
DEFAULT_PERSIST_TIMEOUT_SECONDS = 10.0

DEFAULT_QUEUE_KEY = "link_metadata:queue"
DEFAULT_PROCESSING_KEY = "link_metadata:queue:processing"

LINK_METADATA_UPDATED_EVENT = "link_metadata_updated"
DEFAULT_EVENT_CHANNEL_PREFIX = "post:"

INTERNAL_UPLOAD_PATH_PREFIX = "/api/v1/uploads"


class FETCH_ERROR_TYPE:
    TIMEOUT = "timeout"
    INVALID_URL = "invalid_url"
    BLOCKED = "blocked"
    HTTP_STATUS = "http_status"
    DNS = "dns"
    REDIRECT = "redirect"
    FETCH_ERROR = "fetch_error"
