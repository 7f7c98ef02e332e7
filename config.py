import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        currency_format: str,
        insights_api_key: str,
        insights_api_url: str,
        insights_model: str,
        insights_timeout_secs: float,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.currency_format = currency_format
        self.insights_api_key = insights_api_key
        self.insights_api_url = insights_api_url
        self.insights_model = insights_model
        self.insights_timeout_secs = insights_timeout_secs

    @property
    def remote_insights_enabled(self) -> bool:
        return bool(self.insights_api_key)


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance.db"
    database_url = os.getenv("FINANCE_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINANCE_TIMEZONE", "UTC")
    currency_format = os.getenv("FINANCE_CURRENCY_FORMAT", "${amount}")
    insights_api_key = os.getenv("FINANCE_INSIGHTS_API_KEY", "").strip()
    insights_api_url = os.getenv(
        "FINANCE_INSIGHTS_API_URL", "https://api.groq.com/openai/v1/chat/completions"
    )
    insights_model = os.getenv("FINANCE_INSIGHTS_MODEL", "llama-3.1-8b-instant")
    insights_timeout_secs = float(os.getenv("FINANCE_INSIGHTS_TIMEOUT_SECS", "15"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        currency_format=currency_format,
        insights_api_key=insights_api_key,
        insights_api_url=insights_api_url,
        insights_model=insights_model,
        insights_timeout_secs=insights_timeout_secs,
    )
