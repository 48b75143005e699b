# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./database_accesscore.db"

    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Provisioned once; the Admin role and this account are never editable/deletable
    ADMIN_ROLE_NAME: str = "Admin"
    SYSTEM_ADMIN_EMAIL: str = "admin@digious.com"
    SYSTEM_ADMIN_PASSWORD: str = "change-me-admin"

    # Profile pictures
    UPLOAD_DIR: str = "static/uploads"
    MAX_PROFILE_PICTURE_BYTES: int = 5 * 1024 * 1024

    FRONTEND_URL: Optional[str] = None

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
