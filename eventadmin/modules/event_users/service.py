import logging
from typing import Optional

from supabase import Client

from eventadmin.config.settings import settings
from eventadmin.core.errors import NotFound, StoreOperationFailed
from eventadmin.modules.event_users.schemas import EventUserReactivate, EventUserTarget
from eventadmin.modules.permissions.schemas import utcnow

logger = logging.getLogger(__name__)


def _literal_pattern(value: str) -> str:
    """ILIKE pattern that matches `value` exactly, ignoring case"""
    for char in ("\\", "%", "_"):
        value = value.replace(char, "\\" + char)
    return value


class EventUserService:
    """Participant activation for a single event.

    Deactivation also drops the participant's whitelist entries so the mobile
    sign-in flow stops letting them back in. Entries are matched on email
    without regard to case, since older rows keep the casing they were
    imported with. Reactivation restores one entry
    keyed by the participant's user id.
    """

    def __init__(self, supabase: Client, users_table: Optional[str] = None, whitelist_table: Optional[str] = None):
        self.supabase = supabase
        self.users_table = users_table or settings.event_users_table
        self.whitelist_table = whitelist_table or settings.event_whitelist_table

    def _failed(self, operation: str, error: Exception) -> StoreOperationFailed:
        logger.error(f"{operation} failed: {error}")
        return StoreOperationFailed(f"{operation} failed")

    def _get_participant(self, target: EventUserTarget) -> dict:
        try:
            result = self.supabase.table(self.users_table)\
                .select("*")\
                .eq("client_id", target.client_id)\
                .eq("event_id", target.event_id)\
                .eq("user_id", target.user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise self._failed("Participant read", e)
        if not result.data:
            raise NotFound("User not found")
        return result.data[0]

    def _set_active(self, target: EventUserTarget, is_active: bool) -> None:
        try:
            self.supabase.table(self.users_table)\
                .update({"is_active": is_active})\
                .eq("client_id", target.client_id)\
                .eq("event_id", target.event_id)\
                .eq("user_id", target.user_id)\
                .execute()
        except Exception as e:
            raise self._failed("Participant update", e)

    def deactivate(self, target: EventUserTarget) -> None:
        participant = self._get_participant(target)
        self._set_active(target, False)

        email = participant.get("email")
        if email:
            try:
                self.supabase.table(self.whitelist_table)\
                    .delete()\
                    .eq("client_id", target.client_id)\
                    .eq("event_id", target.event_id)\
                    .ilike("email", _literal_pattern(email))\
                    .execute()
            except Exception as e:
                raise self._failed("Whitelist delete", e)
        logger.info(f"Deactivated uid={target.user_id} in {target.client_id}/{target.event_id}")

    def reactivate(self, data: EventUserReactivate) -> None:
        self._get_participant(data)
        self._set_active(data, True)

        entry = data.whitelist_data
        try:
            self.supabase.table(self.whitelist_table)\
                .upsert({
                    "id": data.user_id,
                    "client_id": data.client_id,
                    "event_id": data.event_id,
                    "email": entry.email.lower(),
                    "access_tier": entry.access_tier or "standard",
                    "company": entry.company,
                    "locked_fields": entry.locked_fields,
                    "added_at": utcnow().isoformat(),
                }, on_conflict="client_id,event_id,id")\
                .execute()
        except Exception as e:
            raise self._failed("Whitelist upsert", e)
        logger.info(f"Reactivated uid={data.user_id} in {data.client_id}/{data.event_id}")
