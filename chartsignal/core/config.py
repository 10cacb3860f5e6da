import os
from typing import List

from pydantic import BaseModel

PLACEHOLDER_API_KEY = "PLACEHOLDER_API_KEY"


class Settings(BaseModel):
    app_name: str = os.getenv("APP_NAME", "")
    app_env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    vision_model: str = os.getenv("VISION_MODEL", "gpt-4o-mini")
    vision_timeout_sec: float = float(os.getenv("VISION_TIMEOUT_SEC", "25"))

    redis_url: str = os.getenv("REDIS_URL", "")
    cache_ttl_sec: int = int(os.getenv("CACHE_TTL_SEC", "3600"))

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    @property
    def api_key_configured(self) -> bool:
        return bool(self.openai_api_key) and self.openai_api_key != PLACEHOLDER_API_KEY


class EnvValidation(BaseModel):
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []


def validate_environment(s: Settings | None = None) -> EnvValidation:
    """Check required env vars before the app starts taking requests."""
    s = s or settings
    errors: List[str] = []
    warnings: List[str] = []

    key = s.openai_api_key
    if not key:
        errors.append("OPENAI_API_KEY is not defined")
    elif key == PLACEHOLDER_API_KEY:
        errors.append("OPENAI_API_KEY is still set to placeholder value")
    elif len(key) < 20:
        warnings.append("OPENAI_API_KEY seems too short, please verify")

    if not s.app_name:
        warnings.append("APP_NAME is not set (optional)")
    if not s.redis_url:
        warnings.append("REDIS_URL is not set; result cache and job queue are disabled")

    return EnvValidation(is_valid=not errors, errors=errors, warnings=warnings)


def api_status(s: Settings | None = None) -> dict:
    s = s or settings
    if not s.openai_api_key:
        return {"configured": False, "message": "API key not found in environment variables"}
    if s.openai_api_key == PLACEHOLDER_API_KEY:
        return {"configured": False, "message": "Using placeholder API key. Please configure real key."}
    return {"configured": True, "message": "API configured successfully"}


settings = Settings()
