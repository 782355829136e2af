from fastapi import APIRouter, Depends
from supabase import Client

from eventadmin.core.dependencies import CallerScope, check_event_scope, require_admin_caller
from eventadmin.database.supabase_client import get_supabase_admin
from eventadmin.modules.event_users.schemas import (
    EventUserActionResponse, EventUserReactivate, EventUserTarget
)
from eventadmin.modules.event_users.service import EventUserService
from eventadmin.modules.permissions.schemas import Role

router = APIRouter(prefix="/event-users", tags=["event-users"])

require_event_admin = require_admin_caller(Role.CLIENT_ADMIN, Role.EVENT_ADMIN)


def get_event_user_service(supabase: Client = Depends(get_supabase_admin)) -> EventUserService:
    return EventUserService(supabase)


@router.post("/deactivate", response_model=EventUserActionResponse)
async def deactivate_user(
    data: EventUserTarget,
    caller: CallerScope = Depends(require_event_admin),
    service: EventUserService = Depends(get_event_user_service)
):
    """Deactivate a participant and remove their whitelist entries"""
    check_event_scope(caller, data.client_id, data.event_id)
    service.deactivate(data)
    return EventUserActionResponse()


@router.post("/reactivate", response_model=EventUserActionResponse)
async def reactivate_user(
    data: EventUserReactivate,
    caller: CallerScope = Depends(require_event_admin),
    service: EventUserService = Depends(get_event_user_service)
):
    """Reactivate a participant and restore their whitelist entry"""
    check_event_scope(caller, data.client_id, data.event_id)
    service.reactivate(data)
    return EventUserActionResponse()
