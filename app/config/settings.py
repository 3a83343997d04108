from pydantic_settings import BaseSettings
from dotenv import load_dotenv, find_dotenv
from os import getenv
from typing import Optional

_env_path = find_dotenv()  # locate a .env file in this folder or parent folders
if _env_path:
    load_dotenv(_env_path)


def _env_bool(name: str, default: bool) -> bool:
    raw = getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseSettings):
    # Database related
    # DATABASE_URL wins when set (tests use sqlite), otherwise postgres is built from parts
    DATABASE_URL: Optional[str] = getenv('DATABASE_URL')
    DB_HOST_IP: Optional[str] = getenv('DB_HOST_IP')
    DB_USER: Optional[str] = getenv('DB_USER')
    DB_PASSWORD: Optional[str] = getenv('DB_PASSWORD')
    DB_NAME: Optional[str] = getenv('DB_NAME')

    # Scheduling
    SCHEDULER_ENABLED: bool = _env_bool('SCHEDULER_ENABLED', True)
    MONITOR_SWEEP_INTERVAL_MINUTES: int = int(getenv('MONITOR_SWEEP_INTERVAL_MINUTES', '1'))
    PROBE_MAX_WORKERS: int = int(getenv('PROBE_MAX_WORKERS', '10'))

    LOG_LEVEL: str = getenv('LOG_LEVEL', 'DEBUG')

    # Notification webhooks (optional)
    # These may be unset in environments where notifications aren't configured.
    SLACK_WEBHOOK_URL: Optional[str] = getenv('SLACK_WEBHOOK_URL')
    DISCORD_WEBHOOK_URL: Optional[str] = getenv('DISCORD_WEBHOOK_URL')

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST_IP}:5432/{self.DB_NAME}"


settings = Settings()
