# backend/app/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Optional

class Settings(BaseSettings):
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str
    JWT_SECRET: str
    ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None

    # CORS origins
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Diary forms count one submission per calendar day in this zone
    # unless the caller sends X-Timezone
    DEFAULT_TIMEZONE: str = "America/Sao_Paulo"

    # "single_active": activating a form deactivates every other form.
    # "assignment": forms are answered by the users assigned to them.
    FORM_ACTIVATION_MODE: Literal["single_active", "assignment"] = "assignment"

    TEXT_SAMPLE_SIZE: int = 5
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env")

settings = Settings()
