# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path
from dotenv import load_dotenv

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./romawatches.db"

    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Google sign-in
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_TOKENINFO_URL: str = "https://oauth2.googleapis.com/tokeninfo"

    # "Buy now" keeps the previous cart this long (session idle timeout)
    SAVED_CART_TTL_MINUTES: int = 30

    # Bank transfer (VietQR via SePay)
    BANK_QR_URL: str = "https://qr.sepay.vn/img"
    BANK_ACCOUNT_NUMBER: str = "62688888888686"
    BANK_ACCOUNT_DISPLAY: str = "626 8888 8888 686"
    BANK_ACCOUNT_HOLDER: str = "VU CHI THANH"
    BANK_CODE: str = "MB"
    BANK_TRANSFER_DESCRIPTION: str = "thanh toan don hang RomaWatches"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
