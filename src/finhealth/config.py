from typing import Literal, Optional

from pydantic_settings import BaseSettings

from finhealth.analysis.sources import SourcePreference


class Settings(BaseSettings):
    database_url: str = "sqlite:///./finhealth.db"

    # Sleep source selection
    sleep_provider: Literal["store", "garmin"] = "store"
    sleep_source_preference: SourcePreference = SourcePreference.AUTO
    custom_sleep_source_id: str = ""  # advanced override; wins when non-blank
    garmin_fallback_source_id: str = "com.garmin.connect"
    apple_fallback_source_id: str = "com.apple.health"
    apple_source_prefix: str = "com.apple"

    # Weight, resting HR and steps for the daily snapshot
    daily_metrics_provider: Literal["none", "garmin"] = "none"

    day_boundary_hour: int = 12  # "last night" = [yesterday noon, today noon)
    snapshot_hour: int = 13
    cardio_import_days: int = 30
    user_id: int = 1  # single-user

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
