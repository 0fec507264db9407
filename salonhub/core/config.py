from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = os.getenv("APP_NAME", "SalonHub")

    # Storage
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "mongo")  # "mongo" or "memory"
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "salonhub_db")

    # JWT Auth
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your_secret_key_here")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

    # Super admin console
    SUPER_ADMIN_EMAIL: str = os.getenv("SUPER_ADMIN_EMAIL", "admin@salonhub.local")
    SUPER_ADMIN_PASSWORD: str = os.getenv("SUPER_ADMIN_PASSWORD", "")

    # Scheduling
    SLOT_STEP_MINUTES: int = int(os.getenv("SLOT_STEP_MINUTES", "30"))
    DEFAULT_APPOINTMENT_MINUTES: int = int(os.getenv("DEFAULT_APPOINTMENT_MINUTES", "60"))

    # Subscriptions
    TRIAL_DAYS: int = int(os.getenv("TRIAL_DAYS", "10"))

    # WhatsApp hand-off
    WHATSAPP_COUNTRY_CODE: str = os.getenv("WHATSAPP_COUNTRY_CODE", "55")
    SUPPORT_PHONE: str = os.getenv("SUPPORT_PHONE", "")

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",  # admin/booking frontend
        "http://localhost:5173",  # vite dev server
    ]

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

settings = Settings()
