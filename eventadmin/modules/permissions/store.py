import logging
from typing import List, Optional, Protocol

from pydantic import ValidationError
from supabase import Client

from eventadmin.config.settings import settings
from eventadmin.core.errors import StoreOperationFailed
from eventadmin.modules.permissions.schemas import PermissionRecord

logger = logging.getLogger(__name__)


class PermissionStore(Protocol):
    """Persisted permission records, one per principal, keyed by user id."""

    def get(self, user_id: str) -> Optional[PermissionRecord]: ...

    def find_by_email(self, email: str) -> Optional[PermissionRecord]: ...

    def upsert(self, record: PermissionRecord) -> PermissionRecord: ...

    def delete(self, user_id: str) -> None: ...

    def list_all(self) -> List[PermissionRecord]: ...


class SupabasePermissionStore:
    """PermissionStore over the user_permissions table.

    A missing row is None; any backend exception or unreadable row is
    StoreOperationFailed.
    """

    def __init__(self, supabase: Client, table: Optional[str] = None):
        self.supabase = supabase
        self.table = table or settings.permissions_table

    def _failed(self, operation: str, error: Exception) -> StoreOperationFailed:
        logger.error(f"{operation} on {self.table} failed: {error}")
        return StoreOperationFailed(f"{operation} failed")

    def _parse(self, row: dict) -> PermissionRecord:
        try:
            return PermissionRecord(**row)
        except ValidationError as e:
            logger.error(f"Unreadable permission row for user_id={row.get('user_id')}")
            raise self._failed("Permission parse", e)

    def get(self, user_id: str) -> Optional[PermissionRecord]:
        """Get permission record by user id"""
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise self._failed("Permission read", e)
        if not result.data:
            return None
        return self._parse(result.data[0])

    def find_by_email(self, email: str) -> Optional[PermissionRecord]:
        """First permission record granted to `email` (legacy user id lookup)"""
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .eq("email", email.lower())\
                .limit(1)\
                .execute()
        except Exception as e:
            raise self._failed("Permission email lookup", e)
        if not result.data:
            return None
        return self._parse(result.data[0])

    def upsert(self, record: PermissionRecord) -> PermissionRecord:
        """Insert or overwrite the record at record.user_id (last write wins)"""
        try:
            result = self.supabase.table(self.table)\
                .upsert(record.to_row(), on_conflict="user_id")\
                .execute()
        except Exception as e:
            raise self._failed("Permission upsert", e)
        if result.data:
            return self._parse(result.data[0])
        return record

    def delete(self, user_id: str) -> None:
        try:
            self.supabase.table(self.table)\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise self._failed("Permission delete", e)

    def list_all(self) -> List[PermissionRecord]:
        """All permission records ordered by email"""
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .order("email")\
                .execute()
        except Exception as e:
            raise self._failed("Permission list", e)
        return [self._parse(row) for row in result.data or []]
