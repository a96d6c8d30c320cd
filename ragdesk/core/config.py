from typing import Any

from pydantic import PostgresDsn, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    API_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "ragdesk"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"  # Frontend URL

    # Database
    POSTGRES_HOST: str
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    SQLALCHEMY_DATABASE_URI: PostgresDsn | str | None = None
    SYNC_SQLALCHEMY_DATABASE_URI: PostgresDsn | str | None = None

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    def assemble_db_connection(cls, v: str | None, info: Any) -> Any:
        if isinstance(v, str):
            return v
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=info.data.get("POSTGRES_USER"),
            password=info.data.get("POSTGRES_PASSWORD"),
            host=info.data.get("POSTGRES_HOST"),
            port=info.data.get("POSTGRES_PORT"),
            path=f"{info.data.get('POSTGRES_DB') or ''}",
        )

    @field_validator("SYNC_SQLALCHEMY_DATABASE_URI", mode="before")
    def assemble_sync_db_connection(cls, v: str | None, info: Any) -> Any:
        if isinstance(v, str):
            return v
        return PostgresDsn.build(
            scheme="postgresql+psycopg2",  # Alembic runs on the synchronous driver
            username=info.data.get("POSTGRES_USER"),
            password=info.data.get("POSTGRES_PASSWORD"),
            host=info.data.get("POSTGRES_HOST"),
            port=info.data.get("POSTGRES_PORT"),
            path=f"{info.data.get('POSTGRES_DB') or ''}",
        )

    # Redis (Celery broker and ingestion locks)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: str = "6379"
    REDIS_PASSWORD: str = ""
    REDIS_URL: str | None = None

    @field_validator("REDIS_URL", mode="before")
    def assemble_redis_connection(cls, v: str | None, info: Any) -> Any:
        if isinstance(v, str):
            return v
        password = f":{info.data.get('REDIS_PASSWORD')}@" if info.data.get("REDIS_PASSWORD") else ""
        return f"redis://{password}{info.data.get('REDIS_HOST')}:{info.data.get('REDIS_PORT')}/0"

    # OpenAI
    OPENAI_API_KEY: str
    CHAT_MODEL: str = "gpt-4o-mini"
    QUERY_REWRITE_MODEL: str = "gpt-4o-mini"
    IMAGE_ANALYSIS_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.2
    # Must match the vector(N) column; changing it requires a migration and re-ingestion
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIMENSIONS: int = 1536
    MODEL_TIMEOUT_SECONDS: float = 30.0

    # Storage (any S3-compatible endpoint)
    STORAGE_BUCKET: str
    STORAGE_ENDPOINT: str | None = None
    STORAGE_REGION: str | None = None
    STORAGE_ACCESS_KEY: str
    STORAGE_SECRET_KEY: str
    STORAGE_TIMEOUT_SECONDS: float = 30.0
    UPLOAD_URL_EXPIRES_SECONDS: int = 5 * 60
    DOWNLOAD_URL_EXPIRES_SECONDS: int = 60 * 60
    MAX_UPLOAD_BYTES: int = 2 * 1024 * 1024

    # Ingestion
    CHUNK_SIZE: int = 1000  # characters
    CHUNK_OVERLAP: int = 200  # characters
    EMBEDDING_CONCURRENCY: int = 4
    EMBEDDING_MAX_ATTEMPTS: int = 3
    INGESTION_MAX_ATTEMPTS: int = 3
    INGESTION_RETRY_BASE_DELAY: int = 1  # seconds, doubled on every retry
    INGESTION_LOCK_TIMEOUT_SECONDS: int = 15 * 60
    FILE_RETENTION_HOURS: int = 24

    # Retrieval
    RETRIEVAL_LIMIT: int = 5
    QUERY_EMBEDDING_ATTEMPTS: int = 1

    # Auth (token verification only)
    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"

    # Test Database - SQLite in-memory for tests
    TEST_DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",  # Allow extra fields from environment variables
    )

    @model_validator(mode="after")
    def check_chunking(self) -> "Settings":
        if self.CHUNK_OVERLAP >= self.CHUNK_SIZE:
            raise ValueError(
                f"CHUNK_OVERLAP ({self.CHUNK_OVERLAP}) must be smaller than CHUNK_SIZE ({self.CHUNK_SIZE})"
            )
        return self


settings = Settings()
