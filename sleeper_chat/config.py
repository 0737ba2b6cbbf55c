"""
Configuration settings for the Sleeper Chat Assistant API.
"""

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = {
        "env_file": [".env", "sleeper_chat/.env"],
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }

    # Application Environment
    environment: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3002, description="API port")

    # CORS Configuration
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # LLM Configuration
    OPENAI_API_KEY: str = Field(default="", description="OpenAI API key for the chat assistant")
    OPENAI_MODEL: str = Field(default="gpt-3.5-turbo", description="OpenAI model used for chat completions")
    OPENAI_BASE_URL: str = Field(default="https://api.openai.com/v1", description="OpenAI base URL")
    AGENT_TEMPERATURE: float = Field(default=0.7, description="Assistant temperature setting")
    AGENT_TIMEOUT: int = Field(default=60, description="LLM response timeout in seconds")

    # Sleeper API Configuration
    SLEEPER_API_BASE_URL: str = Field(default="https://api.sleeper.app/v1", description="Sleeper API base URL")
    SLEEPER_API_TIMEOUT: int = Field(default=10, description="Sleeper API request timeout in seconds")
    SLEEPER_API_MAX_RETRIES: int = Field(default=2, description="Retries after a failed Sleeper request")
    SLEEPER_API_RETRY_BACKOFF: float = Field(default=0.5, description="Base backoff between Sleeper retries (seconds)")
    SLEEPER_AVATAR_BASE_URL: str = Field(default="https://sleepercdn.com/avatars", description="Sleeper avatar CDN base URL")

    # Sleeper Season Configuration
    SLEEPER_DEFAULT_SPORT: str = Field(default="nfl", description="Sport used when looking up a user's leagues")
    SLEEPER_DEFAULT_SEASON: str = Field(default="2023", description="Season used when looking up a user's leagues")

    # Static player table
    PLAYER_DATA_PATH: str = Field(default="", description="Path to player reference JSON (bundled table when empty)")

    # Chat Configuration
    CHAT_MAX_HISTORY_MESSAGES: int = Field(default=0, description="Max messages sent to the LLM (0 = full history)")
    PURCHASE_STEP_DELAY: float = Field(default=1.0, description="Delay between purchase status updates (seconds)")

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated CORS origins to list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    def has_openai_key(self) -> bool:
        """Whether a usable OpenAI key is configured."""
        return bool(self.OPENAI_API_KEY) and self.OPENAI_API_KEY not in ["placeholder-key"]


# Global settings instance
settings = Settings()
