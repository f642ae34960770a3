"""Runtime configuration for Agora Stage.

Values come from the process environment or a local ``.env`` file. Only
``SECRET_KEY`` is mandatory; everything else has a development default.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

FlipModeSetting = Literal["compound", "single"]


class Settings(BaseSettings):
    """Environment-backed settings for the API, the database and the vote engine."""

    app_name: str = Field(default="Agora Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Bearer tokens
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60 * 24 * 7, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Storage. SQLite needs no server; point DATABASE_URL at Postgres in production.
    database_url: str = Field(default="sqlite:///./agora.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    # SQLite only. IMMEDIATE takes the write lock up front so concurrent
    # writers queue for up to the busy timeout instead of failing mid-transaction.
    sqlite_begin_mode: Literal["DEFERRED", "IMMEDIATE", "EXCLUSIVE"] = Field(
        default="IMMEDIATE",
        alias="SQLITE_BEGIN_MODE",
    )
    sqlite_busy_timeout: float = Field(default=30.0, gt=0, alias="SQLITE_BUSY_TIMEOUT")

    # How a direct upvote <-> downvote flip adjusts reputation.
    # "compound" reverses the old vote and applies the new one,
    # "single" applies only the new vote's delta.
    vote_flip_mode: FlipModeSetting = Field(default="compound", alias="VOTE_FLIP_MODE")

    notifications_page_size: int = Field(default=20, ge=1, alias="NOTIFICATIONS_PAGE_SIZE")
    notifications_max_page_size: int = Field(default=100, ge=1, alias="NOTIFICATIONS_MAX_PAGE_SIZE")

    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["Authorization", "Content-Type"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def effective_database_url(self) -> str:
        """Configured URL, honouring the test-database override."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def database_url_sync(self) -> str:
        """Driver-qualified URL used by the engine and by Alembic.

        Hosted Postgres providers often hand out ``postgres://`` URLs, which
        SQLAlchemy no longer accepts; those are mapped onto the psycopg driver.
        """
        url = self.effective_database_url
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return "postgresql+psycopg://" + url[len(prefix):]
        return url


settings = Settings()  # type: ignore[call-arg]
