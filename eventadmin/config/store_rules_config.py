"""
Store Access Rules Configuration
Declares who may read and write each document path of the event store.
Evaluated by core/store_rules.py; condition names map to CONDITIONS there.

Each rule has a path pattern ({name} segments capture parameters), optional
constraints on captured segments, and condition lists per access kind:
"read" covers get and list, "write" covers create, update and delete, and a
rule may override a single operation (e.g. "list"). The first matching rule
decides; a path no rule matches is denied.
"""

# Event content subcollections readable by participants and managed by admins
CONTENT_COLLECTIONS = (
    "brands",
    "sessions",
    "happenings",
    "posts",
    "stands",
    "participants",
    "feedback",
)

STORE_RULES = [
    {
        "path": "clients/{client_id}",
        "read": ["superadmin", "scoped_admin_for_client"],
        "write": ["superadmin"],
        "description": "Client documents"
    },
    {
        "path": "clients/{client_id}/events/{event_id}",
        "read": ["superadmin", "event_admin_for_event", "active_participant"],
        "write": ["superadmin", "client_admin_for_client"],
        "description": "Event documents"
    },
    {
        "path": "clients/{client_id}/events/{event_id}/whitelist/{entry_id}",
        # Signed-in mobile users check their own access before a participant doc exists
        "read": ["authenticated"],
        "write": ["superadmin", "event_admin_for_event"],
        "description": "Event whitelist entries"
    },
    {
        "path": "clients/{client_id}/events/{event_id}/users/{user_id}",
        "read": ["owner", "superadmin", "event_admin_for_event"],
        "write": ["owner_creating_or_active", "superadmin", "event_admin_for_event"],
        "description": "Event participant documents"
    },
    {
        "path": "clients/{client_id}/events/{event_id}/users/{user_id}/{subcollection}/{doc_id}",
        "read": ["owner", "superadmin", "event_admin_for_event"],
        "write": ["owner_while_active"],
        "description": "Participant private data (favorites, chats, ...)"
    },
    {
        "path": "clients/{client_id}/events/{event_id}/{collection}/{doc_id}",
        "constraints": {"collection": CONTENT_COLLECTIONS},
        "read": ["superadmin", "event_admin_for_event", "active_participant"],
        "write": ["superadmin", "event_admin_for_event"],
        "description": "Event content"
    },
    {
        "path": "userPermissions/{user_id}",
        "read": ["superadmin", "owner_with_admin_role"],
        "list": ["superadmin"],
        "write": ["superadmin"],
        "description": "Admin permission records"
    },
]
