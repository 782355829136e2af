import logging

from supabase import create_client, Client
from eventadmin.config.settings import settings
from eventadmin.core.errors import ServiceUnavailable

logger = logging.getLogger(__name__)


class SupabaseClient:
    _service_client: Client = None

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS and exposes auth.admin.

        Raises ServiceUnavailable when the key is missing or the client cannot
        be created, so callers can tell an unconfigured backend apart from a bad token.
        """
        if cls._service_client is None:
            if not settings.supabase_url or not settings.supabase_service_role_key:
                logger.error("Supabase admin client not configured (url or service role key missing)")
                raise ServiceUnavailable("Identity provider admin client not configured")
            try:
                cls._service_client = create_client(
                    settings.supabase_url, settings.supabase_service_role_key
                )
            except Exception as e:
                logger.error("Supabase admin client init failed: %s", e)
                raise ServiceUnavailable("Identity provider admin client not configured") from e
        return cls._service_client

    @classmethod
    def reset_client(cls):
        cls._service_client = None


def get_supabase_admin() -> Client:
    return SupabaseClient.get_service_client()
