from pydantic_settings import BaseSettings
from typing import List, Union, Optional
from pydantic import field_validator


class Settings(BaseSettings):
    # Hosted backend (database + auth)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None  # Server-only, bypasses RLS
    SUPABASE_JWT_SECRET: Optional[str] = None  # Enables local token verification

    @property
    def has_backend_credentials(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)

    @property
    def elevated_key(self) -> Optional[str]:
        """Service key for administrative paths, anon key when it is missing."""
        return self.SUPABASE_SERVICE_ROLE_KEY or self.SUPABASE_ANON_KEY

    # Support relay (OpenAI-compatible completions API)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    SUPPORT_MODEL: str = "xiaomi/mimo-v2-flash:free"
    SUPPORT_MAX_TOKENS: int = 500
    SUPPORT_TEMPERATURE: float = 0.7

    # Public site
    APP_URL: str = "https://pixico.io"
    SITE_NAME: str = "Pixico"

    # Application
    SECRET_KEY: str = "pixico-dev-secret-change-me"
    DEBUG: bool = False
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("APP_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # Admin session cookie
    COOKIE_SECURE: bool = True  # Set to False for local development without HTTPS
    COOKIE_SAMESITE: str = "lax"
    ADMIN_SESSION_MAX_AGE: int = 24 * 60 * 60  # 24 hours

    @property
    def is_production(self) -> bool:
        return self.COOKIE_SECURE and not self.DEBUG

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
