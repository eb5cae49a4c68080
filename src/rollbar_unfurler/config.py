from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache

class Settings(BaseSettings):
    CLIENT_ID: str = Field(..., description="Slack OAuth client ID")
    CLIENT_SECRET: str = Field(..., description="Slack OAuth client secret")
    VERIFICATION_TOKEN: str = Field(..., description="Slack verification token for inbound requests")
    HOST: str = Field("0.0.0.0", description="Host to listen on")
    PORT: int = Field(8888, description="Port to listen on")
    DB_PATH: str = Field("./unfurler.db", description="Path to SQLite database")
    LOG_LEVEL: str = "INFO"

    # Rollbar settings
    ROLLBAR_API_URL: str = Field("https://api.rollbar.com/api/1", description="Rollbar REST API base URL")
    ROLLBAR_WEB_URL: str = Field("https://rollbar.com", description="Rollbar web UI base URL")
    ROLLBAR_TIMEOUT: float = Field(15.0, description="Timeout in seconds for Rollbar API calls")

    SLASH_COMMAND: str = "/rollbar"
    MAX_STACKTRACE_FRAMES: int = 10

    model_config = SettingsConfigDict(
        env_prefix="UNFURLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

@lru_cache()
def get_settings() -> Settings:
    return Settings()
