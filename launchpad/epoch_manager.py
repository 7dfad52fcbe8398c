"""Calendar-day epochs: advanced at most once per load, whatever the gap."""

import logging
from datetime import date, datetime, timezone

from models import RepertoireSnapshot
from progress_tracker import SUCCESS_EMA_ALPHA

logger = logging.getLogger(__name__)


def current_date_only() -> date:
    """Today's date in UTC, which is what lastPlayedDate has always been stored in."""
    return datetime.now(timezone.utc).date()


def advance_epoch(snapshot: RepertoireSnapshot, today: date | None = None) -> bool:
    """
    Start a new epoch if `today` is later than the last played date.

    The epoch grows by exactly one even after a long break, the daily play
    counter restarts and every successEMA decays once. Calling it again on
    the same day is a no-op. Returns True when a new epoch was started.
    """
    today = today or current_date_only()
    if today <= snapshot.last_played_date:
        return False

    snapshot.current_epoch += 1
    snapshot.last_played_date = today
    snapshot.daily_play_count = 0
    for record in snapshot.variants:
        record.success_ema *= SUCCESS_EMA_ALPHA

    logger.info("Started epoch %d on %s (%d variants decayed)", snapshot.current_epoch, today, len(snapshot.variants))
    return True
