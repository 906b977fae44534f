from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./tracker.db"
    APP_ENV: str = "development"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://tracker.example.com,http://localhost:5173"
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"
    # Optional path; when set, logs are also written to a rotating file.
    LOG_FILE: str = ""

    # Streak lengths that trigger a celebration, comma-separated.
    STREAK_MILESTONES: str = "7,30,100,365"

    STATS_DEFAULT_RANGE: int = 7
    STATS_MAX_RANGE: int = 365

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def streak_milestones_list(self) -> list[int]:
        return sorted(int(m) for m in self.STREAK_MILESTONES.split(",") if m.strip())


settings = Settings()
