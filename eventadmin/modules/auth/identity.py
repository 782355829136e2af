import logging
from typing import Any, Dict, Iterator, Optional, Protocol

from supabase import Client

from eventadmin.config.settings import settings
from eventadmin.core.errors import InvalidToken, StoreOperationFailed
from eventadmin.modules.auth.schemas import Principal, VerifiedToken
from eventadmin.modules.permissions.schemas import TokenClaims

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Token verification and custom-claims administration."""

    def verify_token(self, token: str) -> VerifiedToken: ...

    def iter_users(self) -> Iterator[Principal]: ...

    def get_user_by_email(self, email: str) -> Optional[Principal]: ...

    def create_user(self, email: str) -> Principal: ...

    def set_claims(self, uid: str, claims: Dict[str, Any]) -> None: ...


def _to_principal(user: Any) -> Principal:
    email = getattr(user, "email", None)
    return Principal(
        uid=user.id,
        email=email.lower() if email else None,
        claims=TokenClaims.from_metadata(getattr(user, "app_metadata", None)),
    )


class SupabaseIdentityProvider:
    """IdentityProvider backed by Supabase Auth.

    Custom claims live in app_metadata, which only the service role can write
    and which is embedded in every access token issued after the write.
    """

    def __init__(self, supabase: Client, page_size: Optional[int] = None):
        self.supabase = supabase
        self.page_size = page_size or settings.user_lookup_page_size

    def verify_token(self, token: str) -> VerifiedToken:
        """Validate a JWT with Supabase Auth and return its principal"""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            raise InvalidToken()
        if not user_response or not user_response.user:
            raise InvalidToken()
        principal = _to_principal(user_response.user)
        return VerifiedToken(token=token, **principal.model_dump())

    def iter_users(self) -> Iterator[Principal]:
        """All auth users, page by page"""
        page = 1
        while True:
            try:
                users = self.supabase.auth.admin.list_users(page=page, per_page=self.page_size)
            except Exception as e:
                logger.error(f"User listing failed on page {page}: {e}")
                raise StoreOperationFailed("User lookup failed")
            for user in users or []:
                yield _to_principal(user)
            if not users or len(users) < self.page_size:
                return
            page += 1

    def get_user_by_email(self, email: str) -> Optional[Principal]:
        wanted = email.lower()
        for principal in self.iter_users():
            if principal.email == wanted:
                return principal
        return None

    def create_user(self, email: str) -> Principal:
        """Pre-provision a principal who has not signed in yet"""
        try:
            response = self.supabase.auth.admin.create_user({
                "email": email.lower(),
                "email_confirm": True,
            })
        except Exception as e:
            logger.error(f"User creation failed: {e}")
            raise StoreOperationFailed("User creation failed")
        return _to_principal(response.user)

    def set_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        """Merge `claims` into the user's app_metadata (None clears a key)"""
        try:
            response = self.supabase.auth.admin.update_user_by_id(
                uid,
                {"app_metadata": claims}
            )
        except Exception as e:
            logger.error(f"Claims update failed for {uid}: {e}")
            raise StoreOperationFailed("Claims update failed")
        if not response or not response.user:
            raise StoreOperationFailed("Claims update failed")
