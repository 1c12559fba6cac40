# backend/app/core/config.py

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True
    )

    # --- App Info ---
    APP_NAME: str = "Chef Pantry API"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # --- Server ---
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 5000
    API_PREFIX: str = "/api/v1"

    # --- CORS ---
    CORS_ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5000",
        "http://127.0.0.1:5000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # --- Supabase (API & Auth) ---
    # Optional so the API can boot without a project (health reports degraded)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None  # Admin
    SUPABASE_ANON_KEY: Optional[str] = None          # Public

    # --- Security ---
    SUPABASE_JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"

    # --- Rate Limiting (fixed window, in-memory, per process) ---
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_SWEEP_INTERVAL_SECONDS: int = 5 * 60
    # Only enable behind a proxy that overwrites X-Forwarded-For
    RATE_LIMIT_TRUST_FORWARDED_FOR: bool = False

    RATE_LIMIT_AUTH_WINDOW_MS: int = 15 * 60 * 1000
    RATE_LIMIT_AUTH_MAX_REQUESTS: int = 10

    RATE_LIMIT_PROFILE_WINDOW_MS: int = 5 * 60 * 1000
    RATE_LIMIT_PROFILE_MAX_REQUESTS: int = 30

    RATE_LIMIT_CONTACT_WINDOW_MS: int = 60 * 60 * 1000
    RATE_LIMIT_CONTACT_MAX_REQUESTS: int = 5

    RATE_LIMIT_GENERAL_WINDOW_MS: int = 1 * 60 * 1000
    RATE_LIMIT_GENERAL_MAX_REQUESTS: int = 100

settings = Settings()
