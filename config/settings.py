"""Application settings loaded from environment variables."""

from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine and service configuration from environment variables."""

    tax_year: str = "2025"
    rate_table_file: str = "rate_tables.yaml"
    max_batch_size: int = 20
    gross_up_max_iterations: int = 50
    gross_up_tolerance: Decimal = Decimal("0.01")
    advisory_enabled: bool = True
    gemini_api_key: str = ""
    llm_default_model: str = "gemini/gemini-2.5-flash"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
