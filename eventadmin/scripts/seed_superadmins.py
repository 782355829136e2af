"""
Seed Superadmins Script
Grants the superadmin claim and a superadmin permission record to every
address in ADMIN_EMAILS. Accounts must exist (signed in at least once).

Usage:
    ADMIN_EMAILS=admin1@example.com,admin2@example.com python -m eventadmin.scripts.seed_superadmins
    python -m eventadmin.scripts.seed_superadmins --revoke-legacy
"""

import argparse
import logging
import sys
from typing import Dict, Iterable, List, Optional

from eventadmin.config.settings import settings
from eventadmin.core.errors import AppError
from eventadmin.database.supabase_client import get_supabase_admin
from eventadmin.modules.auth.identity import IdentityProvider, SupabaseIdentityProvider
from eventadmin.modules.permissions.schemas import Role, claims_for_role, synthesize_superadmin_record
from eventadmin.modules.permissions.store import PermissionStore, SupabasePermissionStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_superadmin(identity: IdentityProvider, store: PermissionStore, email: str) -> str:
    """Returns "created", "updated" or "skipped" """
    principal = identity.get_user_by_email(email)
    if principal is None:
        logger.warning(f"User {email} not found. They need to sign in once before running this script.")
        return "skipped"

    existing = store.get(principal.uid)
    record = synthesize_superadmin_record(principal.uid, principal.email or email)
    if existing is not None:
        record = record.model_copy(update={
            "created_at": existing.created_at or record.created_at,
            "created_by": existing.created_by or record.created_by,
        })
    store.upsert(record)
    identity.set_claims(principal.uid, claims_for_role(Role.SUPERADMIN))
    logger.info(f"Set superadmin claim + permission record for {email} (uid: {principal.uid})")
    return "updated" if existing is not None else "created"


def revoke_legacy_admins(identity: IdentityProvider, allowed_emails: Iterable[str]) -> List[str]:
    """Remove the legacy admin claim from principals not on the allowed list"""
    allowed = {email.lower() for email in allowed_emails}
    revoked = []
    for principal in identity.iter_users():
        claims = principal.claims
        if not claims.admin or claims.superadmin:
            continue
        if (principal.email or "") in allowed:
            continue
        logger.warning(f"{principal.email or principal.uid} has the legacy admin claim but is not allowed. Removing it.")
        identity.set_claims(principal.uid, {"admin": False})
        revoked.append(principal.email or principal.uid)
    return revoked


def seed_all(
    identity: IdentityProvider,
    store: PermissionStore,
    emails: List[str],
    revoke_legacy: bool = False
) -> Dict[str, int]:
    counts = {"created": 0, "updated": 0, "skipped": 0, "revoked": 0, "errors": 0}
    for email in emails:
        try:
            outcome = seed_superadmin(identity, store, email)
        except AppError as e:
            logger.error(f"Failed to seed {email}: {e.detail}")
            counts["errors"] += 1
            continue
        counts[outcome] += 1

    if revoke_legacy:
        counts["revoked"] = len(revoke_legacy_admins(identity, emails))
    return counts


def main(argv: Optional[List[str]] = None):
    """Main function to seed superadmins"""
    parser = argparse.ArgumentParser(description="Grant superadmin to ADMIN_EMAILS")
    parser.add_argument(
        "--revoke-legacy",
        action="store_true",
        help="remove the legacy admin claim from accounts not in ADMIN_EMAILS"
    )
    args = parser.parse_args(argv)

    emails = settings.get_admin_emails_list()
    if not emails:
        logger.error("ADMIN_EMAILS is not set. Usage: ADMIN_EMAILS=a@example.com,b@example.com python -m eventadmin.scripts.seed_superadmins")
        sys.exit(1)

    try:
        supabase = get_supabase_admin()
        identity = SupabaseIdentityProvider(supabase)
        store = SupabasePermissionStore(supabase)

        logger.info(f"Seeding superadmins: {', '.join(emails)}")
        counts = seed_all(identity, store, emails, revoke_legacy=args.revoke_legacy)
        logger.info(
            f"Done. created={counts['created']} updated={counts['updated']} "
            f"skipped={counts['skipped']} revoked={counts['revoked']} errors={counts['errors']}"
        )
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)

    if counts["errors"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
