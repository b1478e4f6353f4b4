from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://engine:engine@db:5432/insights"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Shared secret the external scheduler sends as "Authorization: Bearer <secret>".
    CRON_SECRET: str = "changeme-cron-secret"

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS: str = "*"

    # Benchmarking
    MIN_COHORT_SIZE: int = 50
    BENCHMARK_WINDOW_DAYS: int = 90
    RECENT_WINDOW_DAYS: int = 28

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
