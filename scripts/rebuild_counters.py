"""
Recompute running unit counters from the converted-lead ledger.

Usage:
    python scripts/rebuild_counters.py

Conversions resync the counters they lock. Run this after hierarchy edits
to refresh every counter at once and log the ones that drifted.
"""

import asyncio
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from commission_engine.db import get_db_context
from commission_engine.models import AuditAction
from commission_engine.services.ledger import rebuild_counters
from commission_engine.utils.audit import log_action

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("rebuild_counters")


async def main() -> int:
    async with get_db_context() as db:
        changed = await rebuild_counters(db)
        await log_action(
            db=db,
            user_id=None,
            action=AuditAction.REBUILD_COUNTERS,
            target_type="unit_counter",
            action_metadata={"changed": changed},
        )
    logger.info(f"Counters rebuilt, {changed} corrected")
    return changed


if __name__ == "__main__":
    asyncio.run(main())
