from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin auth operations (claims, user lookup)

    # Tables
    permissions_table: str = "user_permissions"
    event_users_table: str = "event_users"
    event_whitelist_table: str = "event_whitelist"

    # Principal lookup by email pages through auth.admin.list_users
    user_lookup_page_size: int = 200

    # Seed script: comma separated superadmin emails
    admin_emails: str = ""

    # Client side (permissions state machine)
    api_base_url: str = "http://localhost:8000/api/v1"
    api_timeout_seconds: float = 20.0

    # App
    app_name: str = "eventadmin-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_admin_emails_list(self) -> List[str]:
        return [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
