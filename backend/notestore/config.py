from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    secret_key: str
    access_token_expire_minutes: int = 10080

    # Identity of this store instance; owner of every note it holds
    node_id: str = "local"
    data_dir: str = "workspace"

    log_level: str = "INFO"
    public_rate_limit: str = "60/minute"

    cors_origins: str = "http://localhost,http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
