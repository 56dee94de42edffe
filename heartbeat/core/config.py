from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from pydantic import field_validator
import secrets

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./heartbeat.db"

    # JWT
    SECRET_KEY: str = ""
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # Application
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    APP_NAME: str = "HeartBeat API"
    APP_VERSION: str = "1.0.0"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173,http://127.0.0.1:3000"
    SITE_URL: str = "http://localhost:5173"  # Used for reset links when the request has no Origin

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
    LOG_FILE: str = "logs/app.log"

    # Security
    PASSWORD_MIN_LENGTH: int = 8
    BCRYPT_ROUNDS: int = 12

    # Database Connection Pool (ignored for SQLite)
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600

    # Outgoing mail for password resets; links are only logged when SMTP_HOST is empty
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "no-reply@heartbeat.local"

    # Reverse geocoding (OpenStreetMap Nominatim)
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/reverse"
    GEOCODER_USER_AGENT: str = "HeartBeat Blood Donation App"
    GEOCODER_TIMEOUT_SECONDS: float = 10.0

    # Rewards
    REWARD_POINTS_PER_DONATION: int = 100

    # Realtime
    ALERT_SOUND_URL: str = "/alert-sound.mp3"
    REALTIME_QUEUE_SIZE: int = 1000  # per subscription; overflowing events are dropped

    @field_validator('DEBUG', mode='before')
    @classmethod
    def parse_bool(cls, v):
        """Parse boolean from string."""
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes")
        return bool(v)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if not self.SECRET_KEY:
            # Tokens will not survive a restart; set SECRET_KEY in .env
            self.SECRET_KEY = secrets.token_urlsafe(32)
        self._cors_origins_list = [item.strip() for item in self.CORS_ORIGINS.split(',') if item.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS_ORIGINS as a list."""
        return self._cors_origins_list

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
