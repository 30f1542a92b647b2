from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

# -----------------------
# Settings and constants
# -----------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    service_name: str = "notifier-service"
    environment: str = "dev"

    # Destination (absent is a valid, handled state)
    webhook_url: Optional[str] = None
    webhook_timeout_s: float = 10.0
    content_max_chars: int = 2000 # Discord "content" limit

    # Pub/Sub push
    pubsub_require_auth: bool = False
    pubsub_push_audience: Optional[str] = None

    # Tracing
    use_cloud_trace: bool = False

settings = Settings() # type: ignore
