from pydantic_settings import BaseSettings
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    SECRET_KEY: str = "your-secret-key-change-in-production"
    JWT_SECRET: Optional[str] = None
    ALGORITHM: str = "HS256"
    # Session token lifetime (in minutes). Adjust via ACCESS_TOKEN_EXPIRE_MINUTES env var.
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    SESSION_COOKIE_NAME: str = "marketplace_session"
    DEBUG: bool = False

    # DATABASE_URL must be provided via environment (Postgres in production).
    # SQLite URLs are accepted for local development and the test-suite.
    DATABASE_URL: str = ""

    # Base64-encoded 32-byte AES-256 key used to encrypt storefront
    # credentials at rest. When unset, STOREFRONT_ENCRYPTION_KEY_FILE may
    # point at a file holding the same base64 value. The application refuses
    # to start without one of them.
    STOREFRONT_ENCRYPTION_KEY: Optional[str] = None
    STOREFRONT_ENCRYPTION_KEY_FILE: Optional[str] = None

    ALLOWED_ORIGINS: str = "http://localhost:3000"
    FRONTEND_URL: str = "http://localhost:3000"

    class Config:
        env_file = None
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def secret_key(self) -> str:
        return self.JWT_SECRET or self.SECRET_KEY

    @property
    def allowed_origins(self) -> list:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


settings = Settings()
