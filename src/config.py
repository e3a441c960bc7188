from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Load environment variables from .env and system environment
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")
    port_search_limit: int = Field(default=100, validation_alias="PORT_SEARCH_LIMIT")

    # Debug mode
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # SSE transport settings
    messages_path: str = Field(default="/messages", validation_alias="MESSAGES_PATH")
    sse_ping_interval: int = Field(default=15, validation_alias="SSE_PING_INTERVAL")

    # Engine settings
    engine_type: str = Field(default="deepseek", validation_alias="ENGINE_TYPE")
    request_timeout: float = Field(default=120.0, validation_alias="REQUEST_TIMEOUT")

    # DeepSeek R1 settings (required)
    deepseek_api_key: str = Field(validation_alias="DEEPSEEK_R1_API_KEY")
    deepseek_api_url: str = Field(validation_alias="DEEPSEEK_R1_API_URL")
    deepseek_model: str = Field(validation_alias="DEEPSEEK_R1_MODEL")

    # Logfire settings
    logfire_enabled: bool = Field(default=False, validation_alias="LOGFIRE_ENABLED")
    logfire_token: Optional[str] = Field(default=None, validation_alias="LOGFIRE_TOKEN")
    logfire_service_name: str = Field(
        default="deepseek-thinker", validation_alias="LOGFIRE_SERVICE_NAME"
    )

    def get_engine_config(self) -> Dict[str, Any]:
        """Return the engine-specific configuration dictionary."""
        engine = self.engine_type.lower()
        if engine == "deepseek":
            return {
                "api_key": self.deepseek_api_key,
                "api_url": self.deepseek_api_url,
                "model": self.deepseek_model,
                "timeout": self.request_timeout,
            }
        else:
            raise ValueError(f"Unsupported ENGINE_TYPE: {self.engine_type}")


def get_settings() -> Settings:
    """Instantiate and return the Settings object."""
    return Settings()
