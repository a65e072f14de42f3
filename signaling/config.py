"""
Service configuration. Uses pydantic-settings to load environment variables.
"""

from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()  # pick up variables from a .env file

class Settings(BaseSettings):
    """
    Application settings. Every value comes from ENV or the .env file.
    """
    HOST: str = Field(default="0.0.0.0", description="Bind address for the signaling server")
    PORT: int = Field(default=8080, description="Port for the WebSocket/health server")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    CORS_ORIGIN: Optional[str] = Field(
        default=None, description="Access-Control-Allow-Origin value for the health endpoint"
    )
    TRAFFIC_LOG: str = Field(
        default="signaling_traffic.log", description="Rotating traffic log path, empty to disable"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
