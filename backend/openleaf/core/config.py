from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "openleaf"
    environment: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    database_url: str = "sqlite:///./openleaf.db"

    upload_dir: str = "./data/uploads"
    max_upload_mb: int = 50
    cover_render_scale: float = 0.5

    session_secret: str = "openleaf-secret-key-2024"
    session_max_age: int = 7 * 24 * 60 * 60
    rate_limit_per_min: int = 60

    api_base_url: str = "http://localhost:8000"
    reader_render_scale: float = 1.5
    flip_duration_ms: int = 600
    request_timeout: float | None = None

    log_level: str = "INFO"

    @property
    def books_dir(self) -> str:
        return f"{self.upload_dir.rstrip('/')}/books"

    @property
    def covers_dir(self) -> str:
        return f"{self.upload_dir.rstrip('/')}/covers"


settings = Settings()
