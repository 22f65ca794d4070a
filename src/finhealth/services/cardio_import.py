"""
Import recent cardio sessions from Garmin Connect into the cardio log.

get_activities() pages newest first, so paging stops at the first activity
older than the cutoff. Sessions already in the log are skipped by
CardioStore.import_entries.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from finhealth.garmin.normalizer import normalize_cardio_activity
from finhealth.models.cardio import CardioEntry
from finhealth.providers.base import HealthDataFetchError

logger = logging.getLogger(__name__)

PAGE_SIZE = 50


async def import_recent_cardio(
    client,
    store,
    days_back: int = 30,
    now: Optional[datetime] = None,
    page_size: int = PAGE_SIZE,
) -> List[CardioEntry]:
    """
    Import cardio sessions started within the last days_back days.

    Args:
        client: connected GarminClient (or AsyncMock in tests).
        store: CardioStore to write into.
        days_back: lookback window in days.
        now: reference time; defaults to datetime.now().
        page_size: activities requested per page.

    Returns:
        The newly added entries (empty if everything was already logged).

    Raises:
        HealthDataFetchError: if Garmin cannot be reached.
    """
    cutoff = (now or datetime.now()) - timedelta(days=days_back)
    candidates: List[CardioEntry] = []
    start = 0

    while True:
        try:
            page = await client.get_activities(start, page_size)
        except Exception as exc:
            raise HealthDataFetchError(f"Garmin activity fetch failed: {exc}") from exc

        reached_cutoff = False
        for raw in page:
            entry = normalize_cardio_activity(raw)
            if entry is None:
                continue
            if entry.date < cutoff:
                reached_cutoff = True
                break
            candidates.append(entry)

        if reached_cutoff or len(page) < page_size:
            break
        start += page_size

    logger.info("Found %d cardio activities since %s", len(candidates), cutoff.date())
    return store.import_entries(candidates)
