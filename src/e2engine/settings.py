from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Defaults for curve sampling and display; override with E2ENGINE_* variables."""
    sample_step_days: float = 0.25  # 6 hours
    horizon_weeks: int = 8
    forecast_weeks: int = 6
    display_unit: str = "pmol/L"

    model_config = SettingsConfigDict(env_prefix="E2ENGINE_", env_file=".env", extra="ignore")

    def clamped_forecast_weeks(self) -> int:
        """Forecast length is kept within 4..8 weeks."""
        return min(max(self.forecast_weeks, 4), 8)


settings = Settings()
