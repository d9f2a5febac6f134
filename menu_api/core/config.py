from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Menu API"
    environment: str = "local"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    seed_menu: bool = True
    log_request_bodies: bool = True

    write_rate_limit: str = "60/minute"
    rate_limit_enabled: bool = True

    sentry_dsn: str | None = None
    sentry_environment: str | None = None


settings = Settings()
