from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Telegram
    telegram_bot_token: str
    telegram_webhook_secret: str = ""  # Optional: for webhook verification
    designated_chat_id: str = ""  # Optional: only answer in this chat
    bot_chat_id: str = ""  # Admin chat used by the image upload script

    # Where tarot-images/<Card>_<Orientation>.jpg are served from
    public_base_url: str = ""

    # Groq (primary provider, OpenAI-compatible API)
    groq_api_key: str = ""
    groq_model: str = "llama-3.1-8b-instant"

    # Anthropic (Claude, fallback provider)
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5"

    # Supabase (in-memory store is used when unset)
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Environment
    environment: str = "development"

    # Readings
    daily_reading_limit: int = 3
    ai_max_attempts: int = 3
    ai_retry_delay_seconds: float = 1.0

    # Image provisioning
    upload_delay_seconds: float = 0.5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
