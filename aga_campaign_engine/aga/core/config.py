import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file before class definition so os.getenv picks up the values
_env_path = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(dotenv_path=_env_path)


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


class Settings:
    # App
    APP_NAME: str = "AGA Campaign Engine"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Database
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", 5432))
    DB_NAME: str = os.getenv("DB_NAME", "aga")
    DB_USER: str = os.getenv("DB_USER", "postgres")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "postgres")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", 10))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", 20))
    DATABASE_URL_OVERRIDE: Optional[str] = os.getenv("DATABASE_URL")

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    # JWT issued by the external auth provider
    SECRET_KEY: str = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
    ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    # Redis
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", 6379))
    REDIS_DB: int = int(os.getenv("REDIS_DB", 0))

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Change feed for the runs table
    CHANGE_FEED_BACKEND: str = os.getenv("CHANGE_FEED_BACKEND", "redis").lower()
    CHANGE_FEED_CHANNEL: str = os.getenv("CHANGE_FEED_CHANNEL", "run-updates")

    # Workflow engine (job trigger)
    WORKFLOW_WEBHOOK_URL: str = os.getenv(
        "WORKFLOW_WEBHOOK_URL",
        "https://primary-production-6226d.up.railway.app/webhook/nov-2025-adham",
    )
    # None = wait for the workflow engine as long as it takes
    WORKFLOW_TIMEOUT: Optional[float] = _optional_float("WORKFLOW_TIMEOUT")
    WORKFLOW_CALLBACK_SECRET: str = os.getenv("WORKFLOW_CALLBACK_SECRET", "")

    # Dashboard
    RUN_HISTORY_LIMIT: int = int(os.getenv("RUN_HISTORY_LIMIT", 20))
    INSTANTLY_CAMPAIGN_URL: str = os.getenv(
        "INSTANTLY_CAMPAIGN_URL",
        "https://app.instantly.ai/app/campaign/{run_id}/leads",
    )

    # Submission form
    LEAD_COUNT_MIN: int = int(os.getenv("LEAD_COUNT_MIN", 500))
    LEAD_COUNT_MAX: int = int(os.getenv("LEAD_COUNT_MAX", 10000))
    LEAD_COUNT_DEFAULT: int = int(os.getenv("LEAD_COUNT_DEFAULT", 500))


settings = Settings()
