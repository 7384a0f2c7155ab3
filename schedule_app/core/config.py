from datetime import time
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database (key-value store and accounts live here)
    database_url: str
    database_ssl: bool = True

    # JWT
    secret_key: str
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # "account": email/password identity service; "local": single fixed identity, no sign-in
    auth_mode: Literal["account", "local"] = "account"

    # Day schedule
    working_hours_start: time = time(8, 0)
    working_hours_end: time = time(22, 0)  # exclusive, last slot starts at 21:30
    slot_interval_minutes: int = 30
    default_duration_minutes: int = 60

    # Confirmation card rasterization
    confirmation_image_scale: int = 2
    confirmation_background_color: str = "#ffffff"
    confirmation_cross_origin: bool = True

    site_name: str = "Schedule"

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def local_mode(self) -> bool:
        return self.auth_mode == "local"


settings = Settings()
