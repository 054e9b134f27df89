"""
reminder_poller.py: Background due-reminder scan
Runs ReminderService.check_due for every user with active reminders on a
fixed interval. A scan that is still running when the next tick arrives
causes that tick to be skipped.
"""

import asyncio
import logging
from datetime import datetime, timezone

from config import REMINDER_POLL_MINUTES
from database import SessionLocal
from services.profile_service import ProfileService
from services.reminder_service import ReminderService

logger = logging.getLogger(__name__)

_scan_lock = asyncio.Lock()
_task: asyncio.Task | None = None


def scan_all_users(session_factory=SessionLocal, now: datetime = None) -> dict:
    """One pass over all users; returns {user_id: pending count}."""
    now = now or datetime.now(timezone.utc)
    results = {}
    db = session_factory()
    try:
        for user_id in ReminderService.users_with_active_reminders(db):
            tz_name = ProfileService.get_timezone(db, user_id)
            try:
                results[user_id] = len(ReminderService.check_due(db, user_id, tz_name, now))
            except Exception:
                # check_due has already rolled back and logged; keep scanning the rest
                results[user_id] = None
    finally:
        db.close()
    return results


async def run_scan(session_factory=SessionLocal) -> dict | None:
    """Run one scan unless another is in progress. Returns None when skipped."""
    if _scan_lock.locked():
        logger.info("Reminder scan already running, skipping this tick")
        return None
    async with _scan_lock:
        started = datetime.now(timezone.utc)
        results = await asyncio.to_thread(scan_all_users, session_factory)
        elapsed = (datetime.now(timezone.utc) - started).total_seconds()
        logger.info("Reminder scan finished: %d users in %.2fs", len(results), elapsed)
        return results


async def _poll_forever(interval_seconds: float):
    while True:
        try:
            await run_scan()
        except Exception:
            logger.exception("Reminder scan failed")
        await asyncio.sleep(interval_seconds)


def start(interval_minutes: float = REMINDER_POLL_MINUTES) -> asyncio.Task:
    global _task
    if _task is None or _task.done():
        _task = asyncio.create_task(_poll_forever(interval_minutes * 60))
        logger.info("Reminder poller started (every %s min)", interval_minutes)
    return _task


async def stop():
    global _task
    if _task is None:
        return
    _task.cancel()
    try:
        await _task
    except asyncio.CancelledError:
        pass
    _task = None
    logger.info("Reminder poller stopped")
