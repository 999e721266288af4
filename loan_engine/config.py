from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "LOAN_ENGINE_", "env_file": ".env", "env_file_encoding": "utf-8"}

    # Validation limits
    max_term_months: int = 600  # 50 years

    # Accepted, but logged (payday-style APRs, oversized balloons)
    high_rate_warning_pct: float = 100.0
    balloon_warning_ratio: float = 1.5

    # Defaults for boundary input models
    default_day_count: str = "30E/360"


settings = Settings()
