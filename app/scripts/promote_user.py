"""
Promote User Script
Sets the role of an existing account, e.g. to bootstrap the first admin:

    python -m app.scripts.promote_user someone@example.com admin
    python -m app.scripts.promote_user manager@example.com station_manager --station <station-id>
"""

import sys
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.core.dependencies import ROLES, ROLE_STATION_MANAGER
from app.database.supabase_client import get_service_supabase
from supabase import Client
from typing import Optional
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def promote(supabase: Client, email: str, role: str, station_id: Optional[str] = None) -> bool:
    existing = supabase.table("user_profiles")\
        .select("id")\
        .eq("email", email)\
        .limit(1)\
        .execute()
    if not existing.data:
        logger.error(f"No profile found for {email}")
        return False

    supabase.table("user_profiles")\
        .update({
            "role": role,
            "station_id": station_id if role == ROLE_STATION_MANAGER else None
        })\
        .eq("id", existing.data[0]["id"])\
        .execute()
    logger.info(f"{email} is now {role}")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Change the role of a user")
    parser.add_argument("email")
    parser.add_argument("role", choices=ROLES)
    parser.add_argument("--station", dest="station_id")
    args = parser.parse_args(argv)

    if args.role == ROLE_STATION_MANAGER and not args.station_id:
        parser.error("--station is required for station_manager")

    try:
        if not promote(get_service_supabase(), args.email, args.role, args.station_id):
            sys.exit(1)
    except Exception as e:
        logger.error(f"Error promoting user: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
