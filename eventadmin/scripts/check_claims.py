"""
Check Claims Script
Prints a user's claims, permission record and the role the claims resolver
would compute for them. Read-only: nothing is healed or migrated.

Usage:
    python -m eventadmin.scripts.check_claims <email>
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from eventadmin.database.supabase_client import get_supabase_admin
from eventadmin.modules.auth.identity import IdentityProvider, SupabaseIdentityProvider
from eventadmin.modules.auth.resolver import ClaimsResolver
from eventadmin.modules.permissions.store import PermissionStore, SupabasePermissionStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def describe_user(identity: IdentityProvider, store: PermissionStore, email: str) -> Optional[str]:
    """Human-readable report for `email`, or None when the user does not exist"""
    principal = identity.get_user_by_email(email)
    if principal is None:
        return None

    record = store.get(principal.uid)
    resolution, source = ClaimsResolver(store, identity).preview(principal)
    claims = principal.claims

    lines = [
        f"Email: {principal.email}",
        f"UID: {principal.uid}",
        "",
        "--- Claims ---",
        json.dumps(claims.model_dump(mode="json"), indent=2),
        f"Has superadmin claim: {'YES' if claims.superadmin else 'NO'}",
        f"Has legacy admin claim: {'YES' if claims.admin else 'NO'}",
        "",
        "--- Permission record ---",
        json.dumps(record.to_row(), indent=2) if record else "No permission record found",
        "",
        "--- Resolution ---",
        f"Role: {resolution.role.value if resolution.role else 'none'} ({source})",
    ]
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Show claims and permissions for a user")
    parser.add_argument("email")
    args = parser.parse_args(argv)

    try:
        supabase = get_supabase_admin()
        report = describe_user(
            SupabaseIdentityProvider(supabase),
            SupabasePermissionStore(supabase),
            args.email
        )
    except Exception as e:
        logger.error(f"Error checking claims: {e}")
        sys.exit(1)

    if report is None:
        logger.error(f"User {args.email} not found")
        sys.exit(1)
    print(report)


if __name__ == "__main__":
    main()
