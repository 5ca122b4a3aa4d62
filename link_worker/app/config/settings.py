from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from link_worker.app.constants import (
    DEFAULT_EVENT_CHANNEL_PREFIX,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_PERSIST_TIMEOUT_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    DEFAULT_PROCESSING_KEY,
    DEFAULT_QUEUE_KEY,
    DEFAULT_WORKER_COUNT,
    INTERNAL_UPLOAD_PATH_PREFIX,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    redis_url: str = Field("redis://localhost:6379/0", validation_alias="REDIS_URL")
    redis_connect_timeout_seconds: float = Field(5.0, validation_alias="REDIS_CONNECT_TIMEOUT_SECONDS")
    # Added to the poll timeout to get the socket read timeout, so BLMOVE can finish first.
    redis_socket_timeout_margin_seconds: float = Field(5.0, validation_alias="REDIS_SOCKET_TIMEOUT_MARGIN_SECONDS")
    redis_health_check_interval_seconds: int = Field(30, validation_alias="REDIS_HEALTH_CHECK_INTERVAL_SECONDS")
    queue_key: str = Field(DEFAULT_QUEUE_KEY, validation_alias="QUEUE_KEY")
    processing_key: str = Field(DEFAULT_PROCESSING_KEY, validation_alias="PROCESSING_KEY")

    queue_backend: str = Field("redis", validation_alias="QUEUE_BACKEND")
    repository_backend: str = Field("mongo", validation_alias="REPOSITORY_BACKEND")
    publisher_backend: str = Field("redis", validation_alias="PUBLISHER_BACKEND")

    database_host: str = Field("localhost", validation_alias="DATABASE_HOST")
    database_port: int = Field(27017, validation_alias="DATABASE_PORT")
    database_user: str = Field("", validation_alias="DATABASE_USER")
    database_password: str = Field("", validation_alias="DATABASE_PASSWORD")
    database_name: str = Field("link_metadata", validation_alias="DATABASE_NAME")
    database_collection: str = Field("link_metadata", validation_alias="DATABASE_COLLECTION")
    database_connection_timeout_ms: int = Field(5000, validation_alias="DATABASE_CONNECTION_TIMEOUT_MS")
    database_socket_timeout_ms: int = Field(10000, validation_alias="DATABASE_SOCKET_TIMEOUT_MS")

    # Non-positive values fall back to DEFAULT_WORKER_COUNT in the pool.
    worker_count: int = Field(DEFAULT_WORKER_COUNT, validation_alias="WORKER_COUNT")
    poll_timeout_seconds: float = Field(DEFAULT_POLL_TIMEOUT_SECONDS, validation_alias="POLL_TIMEOUT_SECONDS")
    fetch_timeout_seconds: float = Field(DEFAULT_FETCH_TIMEOUT_SECONDS, validation_alias="FETCH_TIMEOUT_SECONDS")
    persist_timeout_seconds: float = Field(DEFAULT_PERSIST_TIMEOUT_SECONDS, validation_alias="PERSIST_TIMEOUT_SECONDS")
    dequeue_error_backoff_seconds: float = Field(1.0, validation_alias="DEQUEUE_ERROR_BACKOFF_SECONDS")

    event_channel_prefix: str = Field(DEFAULT_EVENT_CHANNEL_PREFIX, validation_alias="EVENT_CHANNEL_PREFIX")
    publish_timeout_seconds: float = Field(2.0, validation_alias="PUBLISH_TIMEOUT_SECONDS")
    publish_attempts: int = Field(3, validation_alias="PUBLISH_ATTEMPTS")

    fetch_connect_timeout_seconds: float = Field(5.0, validation_alias="FETCH_CONNECT_TIMEOUT_SECONDS")
    fetch_read_timeout_seconds: float = Field(15.0, validation_alias="FETCH_READ_TIMEOUT_SECONDS")
    fetch_user_agent: str = Field("LinkMetadataFetcher/1.0", validation_alias="FETCH_USER_AGENT")
    fetch_max_body_bytes: int = Field(2 * 1024 * 1024, validation_alias="FETCH_MAX_BODY_BYTES")
    fetch_max_redirects: int = Field(5, validation_alias="FETCH_MAX_REDIRECTS")
    fetch_max_retries: int = Field(2, validation_alias="FETCH_MAX_RETRIES")

    initial_backoff_seconds: float = Field(0.5, validation_alias="INITIAL_BACKOFF_SECONDS")
    max_backoff_seconds: float = Field(10.0, validation_alias="MAX_BACKOFF_SECONDS")
    max_connection_attempts: int = Field(5, validation_alias="MAX_CONNECTION_ATTEMPTS")
    backoff_multiplier: float = Field(2.0, validation_alias="BACKOFF_MULTIPLIER")

    # 0 disables the health/queue-depth HTTP server.
    health_host: str = Field("0.0.0.0", validation_alias="HEALTH_HOST")
    health_port: int = Field(0, validation_alias="HEALTH_PORT")
    readiness_ping_timeout_seconds: float = Field(5.0, validation_alias="READINESS_PING_TIMEOUT_SECONDS")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(False, validation_alias="LOG_JSON")

    link_metadata_enabled: bool = Field(True, validation_alias="LINK_METADATA_ENABLED")
    internal_upload_path_prefix: str = Field(INTERNAL_UPLOAD_PATH_PREFIX, validation_alias="INTERNAL_UPLOAD_PATH_PREFIX")
