from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Core
    ENVIRONMENT: str = Field(default="production")
    LOG_LEVEL: str = Field(default="INFO")
    FIRESTORE_PROJECT_ID: str = Field(default="")

    # SMS gateway. Disabled means test mode: messages are logged, never sent.
    SMS_ENABLED: bool = Field(default=False)
    SMS_API_URL: str = Field(default="https://rest.nexmo.com/sms/json")
    SMS_API_KEY: str = Field(default="")
    SMS_API_SECRET: str = Field(default="")
    SMS_SENDER_ID: str = Field(default="CoachPay")
    SMS_TIMEOUT_SEC: float = Field(default=20.0)

    # Phone normalization
    SMS_COUNTRY_PREFIX: str = Field(default="+972")
    SMS_DOMESTIC_MOBILE_PATTERN: str = Field(default=r"^05\d{8}$")
    SMS_DEFAULT_PREFIX: str = Field(default="+1")

    # Reminder engine
    REMINDER_SCHEDULER_ENABLED: bool = Field(default=True)
    REMINDER_HOUR: int = Field(default=9)
    REMINDER_MINUTE: int = Field(default=0)
    REMINDER_TIMEZONE: str = Field(default="")  # empty = process local time
    REMINDER_MAX_WORKERS: int = Field(default=8)
    REMINDER_BRAND: str = Field(default="CoachPay")


settings = Settings()
