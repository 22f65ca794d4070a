"""
SleepService: wires a health-data provider to the sleep analysis layer.

Flow for resolve_breakdown():
  1. Custom source id set?  → filtered union breakdown for it
  2. Otherwise fetch the window, detect/resolve a source per preference
  3. Source chosen          → filtered union breakdown
  4. No source, or the filtered breakdown is empty
                            → exclusive breakdown over all sources

Degradation is preferred to failure: an empty filtered result silently
falls back to the exclusive view. Provider failures (HealthDataFetchError)
propagate unchanged and are never turned into "no data".

Each public call performs exactly one fetch; the fetched snapshot is reused
for every step of the same call.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from finhealth.analysis.sleep import (
    SLEEP_ANALYSIS,
    RawSample,
    SleepBreakdown,
    analysis_window,
    exclusive_breakdown,
    source_ids,
    total_asleep_hours,
    union_breakdown,
)
from finhealth.analysis.sources import (
    DEFAULT_GARMIN_SOURCE_ID,
    DEFAULT_PLATFORM_PREFIX,
    DEFAULT_PLATFORM_SOURCE_ID,
    SourcePreference,
    detect_preferred_source,
    resolve_source,
)

logger = logging.getLogger(__name__)

Window = Tuple[datetime, datetime]


class SleepService:
    """Computes last-night sleep views from an injected provider."""

    def __init__(
        self,
        provider,
        platform_prefix: str = DEFAULT_PLATFORM_PREFIX,
        garmin_fallback_id: str = DEFAULT_GARMIN_SOURCE_ID,
        platform_fallback_id: str = DEFAULT_PLATFORM_SOURCE_ID,
        day_boundary_hour: int = 12,
    ):
        """
        Args:
            provider: HealthDataProvider (or AsyncMock in tests).
            platform_prefix: reverse-domain prefix identifying platform sources.
            garmin_fallback_id: id used for GARMIN_ONLY when none is detected.
            platform_fallback_id: id used for APPLE_ONLY when none is detected.
            day_boundary_hour: hour the "last night" window is anchored on.
        """
        self.provider = provider
        self.platform_prefix = platform_prefix
        self.garmin_fallback_id = garmin_fallback_id
        self.platform_fallback_id = platform_fallback_id
        self.day_boundary_hour = day_boundary_hour

    @classmethod
    def from_settings(cls, provider, settings) -> "SleepService":
        return cls(
            provider,
            platform_prefix=settings.apple_source_prefix,
            garmin_fallback_id=settings.garmin_fallback_source_id,
            platform_fallback_id=settings.apple_fallback_source_id,
            day_boundary_hour=settings.day_boundary_hour,
        )

    def last_night(self, now: Optional[datetime] = None) -> Window:
        """The [yesterday boundary, today boundary) window relative to now."""
        return analysis_window(now or datetime.now(), self.day_boundary_hour)

    async def _fetch(self, window: Window) -> List[RawSample]:
        start, end = window
        return await self.provider.fetch_category_samples(SLEEP_ANALYSIS, start, end)

    # ─── Single views ─────────────────────────────────────────────────────────

    async def compute_total_sleep_hours(self, window: Window) -> Optional[float]:
        return total_asleep_hours(await self._fetch(window))

    async def compute_union_breakdown(
        self,
        window: Window,
        source_filter: Optional[str] = None,
    ) -> Optional[SleepBreakdown]:
        """A blank source_filter means no filter."""
        source_filter = (source_filter or "").strip() or None
        return union_breakdown(await self._fetch(window), source_id=source_filter)

    async def compute_exclusive_breakdown(self, window: Window) -> Optional[SleepBreakdown]:
        return exclusive_breakdown(await self._fetch(window))

    async def detect_preferred_source(self, window: Window) -> Optional[str]:
        samples = await self._fetch(window)
        return detect_preferred_source(source_ids(samples), self.platform_prefix)

    # ─── Orchestration ────────────────────────────────────────────────────────

    async def resolve_breakdown(
        self,
        window: Window,
        preference: SourcePreference = SourcePreference.AUTO,
        custom_source_id: Optional[str] = None,
    ) -> Optional[SleepBreakdown]:
        """
        Breakdown honouring the user's source preference.

        Args:
            window: analysis window.
            preference: configured SourcePreference.
            custom_source_id: override id; wins over preference when non-blank.

        Returns:
            The source-filtered union breakdown when a source is chosen and
            has data, otherwise the exclusive breakdown, or None if the
            window has no sleep at all.

        Raises:
            HealthDataFetchError: if the provider fails.
        """
        samples = await self._fetch(window)

        plan = resolve_source(
            SourcePreference(preference),
            source_ids(samples),
            custom_source_id=custom_source_id,
            platform_prefix=self.platform_prefix,
            garmin_fallback_id=self.garmin_fallback_id,
            platform_fallback_id=self.platform_fallback_id,
        )

        if plan.source_id is not None:
            breakdown = union_breakdown(samples, source_id=plan.source_id)
            if breakdown is not None:
                logger.info(
                    "Sleep breakdown from source %s (%s)", plan.source_id, plan.reason
                )
                return breakdown
            logger.info(
                "No sleep from source %s (%s); falling back to exclusive merge",
                plan.source_id,
                plan.reason,
            )
        else:
            logger.info("Using exclusive sleep merge (%s)", plan.reason)

        return exclusive_breakdown(samples)
