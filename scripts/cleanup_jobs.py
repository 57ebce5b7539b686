# -*- coding: utf-8 -*-
"""
Application retention sweep

Deletes rejected applications older than 180 days and old applications of
postings that were closed more than 60 days ago. Meant to be run by an
external scheduler (cron, systemd timer).

Usage:
    python scripts/cleanup_jobs.py
"""
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from loguru import logger  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.database import Database  # noqa: E402
from app.services.cleanup import run_cleanup  # noqa: E402


async def main() -> int:
    database = Database(settings.database_url)
    try:
        async with database.session() as session:
            report = await run_cleanup(session)
        logger.info(
            f"Cleanup complete: rejected={report.rejected_deleted}, "
            f"stale_jobs={report.stale_jobs}, "
            f"stale_applications={report.stale_applications_deleted}"
        )
        if not report.ok:
            logger.error(f"Cleanup phases failed: {', '.join(report.failed_phases)}")
            return 1
        return 0
    except Exception as e:
        logger.exception(f"Cleanup failed: {e}")
        return 1
    finally:
        await database.disconnect()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
