# pocketpet/core/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Pocket Pet"

    SAVE_DIR: str = "saves"
    SAVE_SLOT_COUNT: int = 3
    GLOBAL_SETTINGS_FILE: str = "global_settings.json"

    DECAY_TICK_INTERVAL_SECONDS: float = 2.0
    SLEEP_STEP_INTERVAL_SECONDS: float = 1.0  # Base cadence of the per-pet tick driver
    ACCESS_RECHECK_INTERVAL_SECONDS: float = 60.0

    LOG_LEVEL: str = "INFO"
    ENV_TYPE: str = "dev"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore",
                                      case_sensitive=False)


settings = Settings()
