"""
Process Reminders Script
Runs one notification batch for today's due reminders.
Can be run manually or from a system cron instead of the HTTP trigger.
"""

import sys
import json
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import get_service_supabase
from app.modules.notifications.processor import ReminderProcessor
import logging

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def main():
    try:
        supabase = get_service_supabase()

        logger.info("Starting reminder processing...")
        summary = ReminderProcessor(supabase).process_reminders_for_today()

        logger.info(summary.message)
        print(json.dumps(summary.stats, indent=2))

        if summary.stats["failed"]:
            sys.exit(2)

    except Exception as e:
        logger.error(f"Error during reminder processing: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
