"""
Async wrapper around the garminconnect library.

garminconnect is synchronous; we run it in a thread pool executor so it
doesn't block the asyncio event loop.

Authentication is handled via GarminAuth (OAuth tokens on disk).
Credentials are never stored in config or env, only the saved tokens.
"""
import asyncio
from typing import Any, Dict, List, Optional

import garminconnect

from finhealth.garmin.auth import GarminAuth


class GarminClient:
    """
    Thin async wrapper over garminconnect.Garmin.

    Call connect() before any data methods. connect() loads the saved tokens
    from disk via GarminAuth; no credentials are required at runtime.
    """

    def __init__(self, auth: Optional[GarminAuth] = None):
        """
        Args:
            auth: GarminAuth instance. Defaults to GarminAuth() which reads
                  from ~/.finhealth/garmin_session/.
        """
        self._auth = auth or GarminAuth()
        self._api: Optional[garminconnect.Garmin] = None

    async def connect(self) -> None:
        """
        Load saved tokens from disk and validate them with Garmin's servers.

        Raises:
            NoSessionError: if `python -m finhealth setup` has not been run.
            SessionExpiredError: if the session has expired (re-run setup).
        """
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._connect_sync)

    @property
    def is_connected(self) -> bool:
        return self._api is not None

    def _connect_sync(self) -> None:
        self._api = self._auth.build_client()

    async def _run(self, fn, *args, **kwargs):
        """Run a sync garminconnect call in the thread pool."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, lambda: fn(*args, **kwargs))

    async def get_sleep_data(self, date_str: str) -> Dict[str, Any]:
        """Fetch sleep data for a given date string 'YYYY-MM-DD'."""
        return await self._run(self._api.get_sleep_data, date_str)

    async def get_activities(
        self,
        start: int = 0,
        limit: int = 20,
        activity_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch a page of activities, newest first, optionally filtered by typeKey.

        garminconnect >= 0.2.x has no activity type kwarg on get_activities(),
        so filtering happens client-side.
        """
        activities: List[Dict[str, Any]] = await self._run(
            self._api.get_activities, start, limit
        )
        if activity_type is None:
            return activities
        return [
            a for a in activities
            if (a.get("activityType") or {}).get("typeKey") == activity_type
        ]

    async def get_stats(self, date_str: str) -> Dict[str, Any]:
        """Daily summary (steps, resting HR, ...) for 'YYYY-MM-DD'."""
        return await self._run(self._api.get_stats, date_str)

    async def get_body_composition(self, start_str: str, end_str: str) -> Dict[str, Any]:
        """Weigh-ins between two 'YYYY-MM-DD' dates, inclusive."""
        return await self._run(self._api.get_body_composition, start_str, end_str)
