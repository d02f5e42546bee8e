import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# .env лежит рядом с пакетом, чтобы запуск из другого каталога его видел
load_dotenv(Path(__file__).with_name(".env"))

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_MAX_AGE = 7 * 24 * 60 * 60
MIN_BCRYPT_ROUNDS = 10


def _default_database_url() -> str:
    db_path = Path(__file__).with_name("app.db")
    return f"sqlite:///{db_path}"


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    database_url: str = field(default_factory=_default_database_url)
    secret_key: str = ""
    token_max_age: int = DEFAULT_TOKEN_MAX_AGE
    admin_username: str = "admin"
    # известный слабый пароль; меняется через /api/change-password после первого входа
    admin_default_password: str = "admin123"
    bcrypt_rounds: int = 12
    timezone: str = "UTC"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    def __post_init__(self):
        if not self.secret_key:
            logger.warning("[!] SECRET_KEY is not set, using a random key; tokens will not survive a restart")
            self.secret_key = secrets.token_urlsafe(32)
        self.bcrypt_rounds = max(int(self.bcrypt_rounds), MIN_BCRYPT_ROUNDS)


def get_settings() -> Settings:
    """
    Собирает настройки из окружения (и .env).
    Пустые переменные считаются незаданными.
    """
    env = {k: v for k, v in os.environ.items() if v and v.strip()}
    settings = Settings(
        secret_key=env.get("SECRET_KEY", ""),
        token_max_age=int(env.get("TOKEN_MAX_AGE", DEFAULT_TOKEN_MAX_AGE)),
        admin_username=env.get("ADMIN_USERNAME", "admin"),
        admin_default_password=env.get("ADMIN_DEFAULT_PASSWORD", "admin123"),
        bcrypt_rounds=int(env.get("BCRYPT_ROUNDS", 12)),
        timezone=env.get("TIMEZONE", "UTC"),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        host=env.get("HOST", "127.0.0.1"),
        port=int(env.get("PORT", 8000)),
    )
    if "DATABASE_URL" in env:
        settings.database_url = env["DATABASE_URL"].strip()
    if "CORS_ORIGINS" in env:
        settings.cors_origins = _split(env["CORS_ORIGINS"])
    return settings
