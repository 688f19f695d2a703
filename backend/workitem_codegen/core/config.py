from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Work Item Codegen"
    debug: bool = False
    environment: str = "development"

    # Anthropic
    anthropic_api_key: str = ""
    generation_model: str = "claude-sonnet-4-20250514"
    generation_max_tokens: int = 8192

    # Azure DevOps
    azure_devops_org_url: str = ""
    azure_devops_project: str = ""
    azure_devops_token: str = ""
    azure_devops_api_version: str = "7.1"

    # Resilient invocation
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0  # seconds, doubled per attempt
    retry_max_delay: float = 10.0
    request_timeout: float = 30.0  # per-attempt timeout for tracker calls
    generation_timeout: float = 45.0
    validation_timeout: float = 20.0
    fix_timeout: float = 25.0

    # Webhooks
    webhook_secret: str = ""  # env: WEBHOOK_SECRET, HMAC-SHA256 signature check disabled when empty

    # Pipeline
    repositories_file: str = ""  # env: REPOSITORIES_FILE, JSON list of repository configs
    branch_name_max_length: int = 250
    post_tracker_comments: bool = True
    max_prompt_length: int | None = None
    webhook_event_types: list[str] = [
        "workitem.created",
        "workitem.updated",
    ]


@lru_cache
def get_settings() -> Settings:
    return Settings()
