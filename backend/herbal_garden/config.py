from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_ROLES = ("student", "researcher", "gardener", "educator", "hobbyist", "other")


class Settings(BaseSettings):
    # Database
    database_url: Optional[str] = None
    mysql_host: str = "localhost"
    mysql_port: int = 3306
    mysql_user: str = "root"
    mysql_password: str = ""
    mysql_database: str = "herbal_garden"
    mysql_ssl: bool = False
    mysql_ssl_ca: Optional[str] = None
    mysql_ssl_ca_b64: Optional[str] = None
    db_pool_size: int = 10
    db_pool_timeout: int = 30
    db_echo: bool = False

    # JWT
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expires: str = "7d"

    # OTP / password recovery
    otp_ttl_minutes: int = 10
    reset_requires_otp: bool = False
    bcrypt_rounds: int = 10

    # Email (SMTP)
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_use_ssl: bool = True
    smtp_use_tls: bool = False
    smtp_timeout: int = 15
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    smtp_from_name: str = "Virtual Herbal Garden"

    # HTTP
    cors_origins: List[str] = [
        "http://localhost:3000",
        "https://virtualherbalgarden-mr5z.onrender.com",
    ]
    cookie_secure: bool = False
    cookie_samesite: str = "lax"
    host: str = "0.0.0.0"
    port: int = 3000
    ssl_keyfile: str = "certs/key.pem"
    ssl_certfile: str = "certs/cert.pem"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"
    log_directory: Optional[str] = None

    # Application
    app_name: str = "Virtual Herbal Garden"
    app_version: str = "1.0.0"
    environment: str = "production"
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v):
        if not v or not v.strip():
            raise ValueError("JWT_SECRET must not be empty")
        return v.strip()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        v = v.lower()
        if v not in ("console", "json"):
            raise ValueError("LOG_FORMAT must be 'console' or 'json'")
        return v

    @model_validator(mode="after")
    def validate_bcrypt_rounds(self):
        # bcrypt itself refuses fewer than 4 rounds
        minimum = 10 if self.environment == "production" else 4
        if self.bcrypt_rounds < minimum:
            raise ValueError(f"BCRYPT_ROUNDS must be at least {minimum}")
        return self

    @property
    def sqlalchemy_url(self) -> str:
        """Explicit DATABASE_URL wins; otherwise build a MySQL URL from parts"""
        if self.database_url:
            return self.database_url
        return (
            f"mysql+pymysql://{quote_plus(self.mysql_user)}:{quote_plus(self.mysql_password)}"
            f"@{self.mysql_host}:{self.mysql_port}/{self.mysql_database}?charset=utf8mb4"
        )

    @property
    def local_https_available(self) -> bool:
        return Path(self.ssl_keyfile).is_file() and Path(self.ssl_certfile).is_file()


@lru_cache
def get_settings() -> Settings:
    return Settings()
