from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Target server for root-relative URLs and schema URIs
    host: str = "http://localhost:8080"
    debug: bool = False

    # Transport settings
    timeout: float = 30.0  # seconds
    verify_ssl: bool = True
    follow_redirects: bool = False

    # Reporting
    report_dir: str = "./report"

    @field_validator("host")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    class Config:
        env_prefix = "TREST_"
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
