from pathlib import Path
from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Event Ticketing Payments'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'event_ticketing'
    # Full URL override, used by tests (e.g. sqlite+aiosqlite:///...)
    DATABASE_URL_OVERRIDE: str = ''

    # Connection pool (ignored by SQLite)
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@'
            f'{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Stripe
    STRIPE_SECRET_KEY: SecretStr = SecretStr('sk_test_change_me')
    STRIPE_SIGNING_SECRET: SecretStr = SecretStr('whsec_payment_change_me')
    STRIPE_REFUND_SIGNING_SECRET: SecretStr = SecretStr('whsec_refund_change_me')
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300

    # Mailgun
    NOTIFIER_BACKEND: str = 'console'  # console | mailgun
    MAILGUN_API_BASE_URL: str = 'https://api.mailgun.net/v3'
    MAILGUN_API_KEY: SecretStr = SecretStr('')
    MAILGUN_SENDING_DOMAIN: str = 'mg.example.com'
    SENDER_NAME: str = 'Event Team'
    SENDER_EMAIL: str = 'no-reply@example.com'
    TEAM_NAME: str = 'Payments Team'
    TEAM_EMAIL: str = 'payments-team@example.com'
    EMAIL_SIGNATURE: str = '- Event - MRS Team'

    # Payment orchestration
    PAYMENT_TTL_MINUTES: int = 15
    DEFAULT_CURRENCY: str = 'usd'
    EXTERNAL_CALL_TIMEOUT_SECONDS: float = 30.0
    FAN_OUT_CONCURRENCY: int = 10


settings = Settings()  # type: ignore
