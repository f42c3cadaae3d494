from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "ApplyFlow"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    app_base_url: str = "http://127.0.0.1:8787"
    log_level: str = "INFO"
    secret_key: str = "change-me"

    database_url: str = "sqlite:///./data/applyflow.db"
    data_dir: Path = Path("./data")

    supabase_url: str = ""
    supabase_anon_key: str = ""

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_timeout_sec: int = 20

    local_llm_enabled: bool = False
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 60

    jsearch_api_key: str = ""
    jsearch_base_url: str = "https://jsearch.p.rapidapi.com"
    indeed_base_url: str = "https://www.indeed.com"
    indeed_max_age_days: int = 14

    discovery_max_roles: int = 3
    discovery_default_role: str = "Software Engineer"
    discovery_cooldown_sec: int = 300
    http_timeout_sec: int = 15

    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = "http://127.0.0.1:8787/api/email"

    cors_origins: str = "http://127.0.0.1:5173"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("discovery_max_roles", "discovery_cooldown_sec", "http_timeout_sec")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be positive")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
