# app/core/config.py
import os
from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./protected_urls.db")
    DATABASE_ECHO: bool = False
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    JWT_ALGORITHM: str = "HS256"
    APP_URL: str = os.getenv("APP_URL", "http://localhost:8000")
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # secret hashing
    BCRYPT_ROUNDS: int = 12

    # oauth token validation
    OAUTH_TIMEOUT_SECONDS: float = 5.0
    GOOGLE_TOKENINFO_URL: str = "https://www.googleapis.com/oauth2/v1/tokeninfo"
    GITHUB_USER_URL: str = "https://api.github.com/user"

    # 0 disables the endpoint lookup cache
    ENDPOINT_CACHE_TTL_SECONDS: float = 600.0

    class Config:
        env_file = ".env"

settings = Settings()
