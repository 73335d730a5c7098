from supabase import create_client, Client
from tarot_bot.config import Settings, get_settings


def get_supabase_admin(settings: Settings | None = None) -> Client:
    """Service role client: bypasses RLS, for server-side operations."""
    settings = settings or get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_service_role_key
    )
