from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "sqlite:///./data/mileagehawk.db"

    scheduler_enabled: bool = True
    scheduler_timezone: str = "America/Chicago"
    scrape_hour: int = 6
    scrape_minute: int = 0
    aggregate_hour: int = 6
    aggregate_minute: int = 30
    alert_check_hour: int = 7
    alert_check_minute: int = 0

    seats_aero_api_key: str = ""
    seats_aero_base_url: str = "https://seats.aero/partnerapi"
    scrape_max_pages: int = 20
    scrape_source_pause_seconds: float = 0.5
    scrape_timeout_seconds: int = 300

    cron_secret: str = ""

    resend_api_key: str = ""
    resend_from_email: str = "alerts@mileagehawk.app"

    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: Optional[str] = None

    app_url: str = "http://localhost:8000"

    def model_post_init(self, __context):
        if self.env == "prod" and self.database_url.startswith("sqlite"):
            raise ValueError(
                "Production requires explicit DATABASE_URL (not SQLite)"
            )

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
