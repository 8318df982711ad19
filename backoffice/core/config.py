"""Application configuration from environment variables."""

import re
from typing import Optional
from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings

SUPPORTED_DB_TYPES = ("postgres", "mysql")

_TTL_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_TTL_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_ttl(value: str) -> int:
    """Convert a TTL like ``3600``, ``30m``, ``1h`` or ``7d`` to seconds."""
    match = _TTL_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid TTL value: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _TTL_UNITS[unit]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "Oripro Back Office"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    PORT: int = 3000
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Database
    DB_TYPE: str = "postgres"
    DATABASE_URL: Optional[str] = None

    PGHOST: str = "localhost"
    PGPORT: int = 5432
    PGDATABASE: str = "oripro"
    PGUSER: str = "postgres"
    PGPASSWORD: Optional[str] = None
    PGSSL: Optional[str] = None

    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_DATABASE: str = "oripro"
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: Optional[str] = None

    # Auth
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL: str = "1h"
    PASSWORD_RESET_TTL_MINUTES: int = 30

    # URLs
    APP_BASE_URL: str = "http://localhost:3000"
    BASE_URL_DOMAIN: Optional[str] = None

    # SMTP
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_FROM: Optional[str] = None
    SMTP_SECURE: bool = False

    # Internal endpoints
    INTERNAL_BASIC_AUTH_USER: Optional[str] = None
    INTERNAL_BASIC_AUTH_PASS: Optional[str] = None

    # Observability
    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = False
    LOKI_URL: Optional[str] = None
    LOKI_USERNAME: Optional[str] = None
    LOKI_PASSWORD: Optional[str] = None
    LOKI_LABELS: str = "app=oripro-backoffice"

    # Uploads
    UPLOAD_DIR: str = "public/uploads"
    MAX_UPLOAD_SIZE_MB: int = 5
    IMAGE_MAX_DIMENSION: int = 1920
    IMAGE_QUALITY: int = 80

    # Super Admin Seed
    SUPER_ADMIN_EMAIL: str = "superadmin@oripro.local"
    SUPER_ADMIN_PASSWORD: str = "changeme123"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("DB_TYPE")
    @classmethod
    def _check_db_type(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in SUPPORTED_DB_TYPES:
            raise ValueError(
                f"DB_TYPE must be one of {', '.join(SUPPORTED_DB_TYPES)}, got {value!r}"
            )
        return value

    @field_validator("TOKEN_TTL")
    @classmethod
    def _check_token_ttl(cls, value: str) -> str:
        parse_ttl(value)
        return value

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def token_ttl_seconds(self) -> int:
        return parse_ttl(self.TOKEN_TTL)

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the configured backend."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_TYPE == "mysql":
            password = f":{quote_plus(self.MYSQL_PASSWORD)}" if self.MYSQL_PASSWORD else ""
            return (
                f"mysql+pymysql://{self.MYSQL_USER}{password}"
                f"@{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DATABASE}?charset=utf8mb4"
            )
        password = f":{quote_plus(self.PGPASSWORD)}" if self.PGPASSWORD else ""
        url = (
            f"postgresql+psycopg2://{self.PGUSER}{password}"
            f"@{self.PGHOST}:{self.PGPORT}/{self.PGDATABASE}"
        )
        if self.PGSSL:
            # PGSSL=allow: encrypt without verifying the server certificate
            url += "?sslmode=" + ("require" if self.PGSSL == "allow" else "verify-full")
        return url

    @property
    def loki_labels(self) -> dict[str, str]:
        labels = {}
        for pair in self.LOKI_LABELS.split(","):
            key, sep, value = pair.partition("=")
            if sep and key.strip():
                labels[key.strip()] = value.strip()
        return labels


settings = Settings()
