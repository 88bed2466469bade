from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # App
    app_env: str = "development"
    base_url: str = "https://api.stableshare.app"
    frontend_url: str = ""         # viewer SPA origin; share URLs point here
    secret_key: str = "changeme"

    # Database
    database_url: str
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # S3-compatible blob store (X-ray uploads)
    s3_endpoint_url: str = ""
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_region: str = "auto"
    xray_bucket: str = "horse-xrays"
    signed_url_ttl_seconds: int = 24 * 60 * 60

    # Share password hashing (argon2)
    password_time_cost: int = 2
    password_memory_cost: int = 65536
    password_parallelism: int = 1

    # Share password throttling
    password_max_attempts: int = 5
    password_window_minutes: int = 60
    password_block_minutes: int = 60

    # Share links
    one_time_default_max_views: int = 1
    share_create_attempts: int = 3
    analytics_recent_days: int = 7
    analytics_latest_views: int = 10

    # Member sessions
    session_token_ttl_seconds: int = 60 * 60

    # Background jobs
    cleanup_interval_minutes: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = False

    def get_frontend_url(self) -> str:
        return (self.frontend_url or self.base_url).rstrip("/")

    def share_url(self, token: str) -> str:
        return f"{self.get_frontend_url()}/shared/{token}"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
