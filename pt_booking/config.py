# pt_booking/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379/0"

    # MINDBODY cache proxy
    mindbody_proxy_url: str = "http://localhost:8090"
    mindbody_site_id: str = ""
    mindbody_username: str = ""
    mindbody_password: str = ""
    mindbody_timeout: float = 10.0

    # Booking links
    hash_salt: str = "change-me"
    hide_time: int = 0  # minutes
    booking_ttl_seconds: int = 86400
    test_trainer_id: str | None = None
    internal_token: str | None = None

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )


settings = Settings()
