from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database (durable store)
    database_url: str = "sqlite:///./notifications.db"

    # Redis (change feed)
    redis_url: str = "redis://localhost:6379/0"

    # HTTP surface used by remote clients
    api_base_url: str = "http://localhost:8000/api"

    # Client cache behaviour
    notification_list_limit: int = 50
    unread_poll_interval_seconds: float = 30.0
    realtime_reconnect_delay_seconds: float = 5.0

    # Alerts
    sound_enabled: bool = True
    sound_volume: float = 0.5

    log_level: str = "INFO"


settings = Settings()
