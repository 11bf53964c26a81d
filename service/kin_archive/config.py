from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Telegram
    telegram_bot_token: str = ""  # Optional: Mini App API works without the bot
    telegram_webhook_secret: str = ""  # Optional: for webhook verification
    bot_username: str = "MyBot_bot"  # Default until changed in settings view
    mini_app_url: str = "https://kin-archive.pages.dev"  # Origin used for #doc= links

    # Delegated classification
    classifier_provider: str = "openai"  # "openai" or "anthropic"
    classifier_model: str = ""  # Empty: provider default
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # Persistence
    storage_backend: str = "file"  # "memory", "file" or "supabase"
    storage_path: str = "kin_archive.json"
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Uploads
    upload_rate_limit: str = "20/minute"
    default_uploader: str = "Сотрудник"

    # Environment
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
