"""
Main entrypoint.

Usage:
    python -m finhealth setup                      # one-time Garmin auth setup
    python -m finhealth sleep [--preference auto]  # print last night's breakdown
    python -m finhealth snapshot                   # record last night into today's entry
    python -m finhealth prs                        # print running PRs
    python -m finhealth import-cardio [--days 30]  # pull recent Garmin cardio sessions
    python -m finhealth serve [--port 8000]        # API + daily scheduler
"""
import argparse
import asyncio
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _run_setup() -> None:
    from finhealth.scripts.setup import run_setup
    run_setup()


async def _build_service():
    """SleepService, engine, settings and the daily metrics provider (may be None)."""
    from finhealth.config import get_settings
    from finhealth.db.engine import get_engine
    from finhealth.providers.factory import build_providers
    from finhealth.services.sleep_service import SleepService

    settings = get_settings()
    engine = get_engine()
    sleep_provider, metrics_provider = await build_providers(settings, engine)
    service = SleepService.from_settings(sleep_provider, settings)
    return service, engine, settings, metrics_provider


async def _run_sleep(preference: str, source_id: str) -> None:
    from finhealth.analysis.pace import format_hours
    from finhealth.analysis.sources import SourcePreference

    service, _, settings, _ = await _build_service()
    breakdown = await service.resolve_breakdown(
        service.last_night(),
        SourcePreference(preference or settings.sleep_source_preference),
        custom_source_id=source_id if source_id is not None else settings.custom_sleep_source_id,
    )
    if breakdown is None:
        print("No sleep recorded last night.")
        return

    print(f"Total {format_hours(breakdown.total_hours)}")
    for label, hours, pct in (
        ("REM", breakdown.rem_hours, breakdown.rem_pct),
        ("Deep", breakdown.deep_hours, breakdown.deep_pct),
        ("Core", breakdown.core_hours, breakdown.core_pct),
        ("Unspecified", breakdown.unspecified_hours, breakdown.unspecified_pct),
    ):
        print(f"  {label:<12} {format_hours(hours):>12}  {round(pct * 100):>3d}%")


async def _run_snapshot() -> None:
    from finhealth.services.snapshot import sync_today

    service, engine, settings, metrics_provider = await _build_service()
    entry = await sync_today(
        engine, service, user_id=settings.user_id, metrics_provider=metrics_provider
    )
    print(
        f"Saved {entry.entry_date}: sleep_hours={entry.sleep_hours} "
        f"weight_kg={entry.weight_kg} resting_heart_rate={entry.resting_heart_rate} "
        f"steps={entry.steps}"
    )


def _load_cardio():
    from sqlmodel import Session

    from finhealth.config import get_settings
    from finhealth.db.engine import get_engine
    from finhealth.services.cardio_store import CardioStore

    with Session(get_engine()) as session:
        return CardioStore(session, user_id=get_settings().user_id).list_entries()


def _run_prs() -> None:
    from finhealth.analysis.pace import format_minutes, format_pace
    from finhealth.analysis.running_prs import pr_summary

    summary = pr_summary(_load_cardio())
    if summary.longest_run is None:
        print("No runs logged yet.")
        return

    for label, pr in summary.distance_prs.items():
        if pr is None:
            print(f"  {label.value:<14} -")
        else:
            print(
                f"  {label.value:<14} {format_minutes(pr.estimated_minutes):>8}"
                f"  {format_pace(pr.pace_minutes_per_km)}"
            )

    longest = summary.longest_run
    print(
        f"  {'Longest run':<14} {longest.distance_km:.2f} km"
        f" on {longest.date.date().isoformat()}"
    )
    fastest = summary.fastest_pace
    print(
        f"  {'Fastest pace':<14} {format_pace(fastest.pace_minutes_per_km)}"
        f" over {fastest.distance_km:.2f} km"
    )


async def _run_import_cardio(days: int) -> None:
    from sqlmodel import Session

    from finhealth.config import get_settings
    from finhealth.db.engine import get_engine
    from finhealth.providers.factory import connect_garmin
    from finhealth.services.cardio_import import import_recent_cardio
    from finhealth.services.cardio_store import CardioStore

    settings = get_settings()
    client = await connect_garmin()
    with Session(get_engine()) as session:
        store = CardioStore(session, user_id=settings.user_id)
        added = await import_recent_cardio(
            client, store, days_back=days or settings.cardio_import_days
        )
    print(f"Imported {len(added)} cardio session(s).")


async def _run_serve(host: str, port: int) -> None:
    import uvicorn

    from finhealth.api.main import app
    from finhealth.config import get_settings
    from finhealth.db.engine import get_engine
    from finhealth.scheduler.jobs import build_scheduler

    scheduler = build_scheduler(get_engine())
    scheduler.start()
    logger.info(
        "Scheduler started (daily snapshot at %02d:00)", get_settings().snapshot_hour
    )

    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port))
    try:
        await server.serve()
    finally:
        scheduler.shutdown()
        logger.info("Goodbye.")


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="finhealth")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("setup", help="Save a Garmin Connect session")

    sleep_p = sub.add_parser("sleep", help="Print last night's sleep breakdown")
    sleep_p.add_argument(
        "--preference",
        choices=["auto", "garmin_only", "apple_only", "combine_exclusive"],
        default=None,
        help="Source preference (default: from settings)",
    )
    sleep_p.add_argument("--source-id", default=None, help="Force a specific source id")

    sub.add_parser("snapshot", help="Record last night's sleep into today's entry")
    sub.add_parser("prs", help="Print running PRs")

    import_p = sub.add_parser("import-cardio", help="Import recent Garmin cardio sessions")
    import_p.add_argument(
        "--days", type=int, default=None, help="Lookback in days (default: from settings)"
    )

    serve_p = sub.add_parser("serve", help="Run the API and daily scheduler")
    serve_p.add_argument("--host", default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    try:
        if args.command == "setup":
            _run_setup()
        elif args.command == "sleep":
            asyncio.run(_run_sleep(args.preference, args.source_id))
        elif args.command == "snapshot":
            asyncio.run(_run_snapshot())
        elif args.command == "prs":
            _run_prs()
        elif args.command == "import-cardio":
            asyncio.run(_run_import_cardio(args.days))
        elif args.command == "serve":
            asyncio.run(_run_serve(args.host, args.port))
    except Exception as exc:
        logger.error("%s failed: %s", args.command, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
